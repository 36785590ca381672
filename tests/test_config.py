from aerocalc.config import Settings, load_settings


def test_settings_read_ui_and_store_values(monkeypatch):
    monkeypatch.setenv("API_URL", "http://api.internal:9000")
    monkeypatch.setenv("MAX_SESSIONS", "25")
    s = load_settings()
    assert s.api_url == "http://api.internal:9000"
    assert s.max_sessions == 25

def test_settings_defaults():
    s = Settings(openai_api_key=None)
    assert s.api_url == "http://127.0.0.1:8000"
    assert s.max_sessions == 1000
    assert s.catalog_path is None
