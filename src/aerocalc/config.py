# -----------------------------------------------------------------------------
# Runtime configuration
# Purpose: Read settings from the environment (and a local .env file) once at
# start-up. The core never reads the environment itself; the API passes the
# relevant values to the registry loader and the insight provider.
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_model: str = "gpt-4o-mini"
    catalog_path: Optional[str] = None  # optional YAML catalog extending the built-ins
    log_level: str = "INFO"
    api_url: str = "http://127.0.0.1:8000"  # read by the Streamlit UI
    max_sessions: int = 1000


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        catalog_path=os.getenv("CATALOG_PATH") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_url=os.getenv("API_URL", "http://127.0.0.1:8000"),
        max_sessions=int(os.getenv("MAX_SESSIONS", "1000")),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
