# -----------------------------------------------------------------------------
# Streamlit Frontend for the Aircraft Performance Calculator
# Purpose:
#   Render the formula registry as sectioned cards, forward raw input text to
#   the API (which owns parsing and evaluation) and show results and insights.
#---------------------------------------------------------------------------

import requests, streamlit as st

from aerocalc.config import load_settings

# Settings load .env, so API_URL can point at a local or remote backend
API_URL = load_settings().api_url

st.set_page_config(page_title="Aircraft Performance Calculator", layout="centered")
st.title("Aircraft Performance Calculator")
st.caption("Execute critical flight formulas for density, altitude and aerodynamics.")


def _post(path, payload=None):
    r = requests.post(f"{API_URL}{path}", json=payload)
    if r.status_code != 200:
        st.error(f"API error {r.status_code}: {r.text}")
        st.stop()
    return r.json()


def _session_for(formula_id):
    # One API session per formula card, kept across Streamlit reruns
    sessions = st.session_state.setdefault("sessions", {})
    if formula_id not in sessions:
        sessions[formula_id] = _post("/sessions", {"formula_id": formula_id})["session_id"]
    return sessions[formula_id]


def _state_for(f):
    # Session ids outlive an API restart or eviction; reopen on 404 and replay
    # whatever the input boxes still hold.
    sid = _session_for(f["id"])
    r = requests.get(f"{API_URL}/sessions/{sid}")
    if r.status_code == 404:
        del st.session_state["sessions"][f["id"]]
        sid = _session_for(f["id"])
        for inp in f["inputs"]:
            key = f"{f['id']}:{inp['id']}"
            if key in st.session_state:
                _post(f"/sessions/{sid}/inputs", {"id": inp["id"], "value": st.session_state[key]})
        r = requests.get(f"{API_URL}/sessions/{sid}")
    if r.status_code != 200:
        st.error(f"API error {r.status_code}: {r.text}")
        st.stop()
    return sid, r.json()


def _on_edit(sid, input_id, key):
    r = requests.post(f"{API_URL}/sessions/{sid}/inputs", json={"id": input_id, "value": st.session_state[key]})
    # 404: session gone, the rerun reopens it and replays this value
    if r.status_code not in (200, 404):
        st.error(f"API error {r.status_code}: {r.text}")


r = requests.get(f"{API_URL}/formulas")
if r.status_code != 200:
    st.error(f"Catalog error: {r.text}")
    st.stop()
catalog = r.json()

for section in catalog["sections"]:
    st.header(section["title"])
    for f in section["formulas"]:
        sid, state = _state_for(f)
        with st.expander(f["title"], expanded=False):
            st.write(f["description"])
            st.code(f["formula_text"], language="text")
            cols = st.columns(2)
            for i, inp in enumerate(f["inputs"]):
                key = f"{f['id']}:{inp['id']}"
                label = f"{inp['label']} ({inp['symbol']}{', ' + inp['unit'] if inp['unit'] else ''})"
                cols[i % 2].text_input(label, value=str(inp["default"]), key=key,
                                       help=inp.get("description") or None,
                                       on_change=_on_edit, args=(sid, inp["id"], key))

            st.metric("Result", f"{state['result']:,.4g} {state['result_unit']}".strip())

            if st.button("Get insight", key=f"insight:{f['id']}"):
                with st.spinner("Analyzing..."):
                    out = _post(f"/sessions/{sid}/insight")
                if out["insight"]:
                    st.info(out["insight"])
                else:
                    st.warning("Inputs changed while analyzing; request a new insight.")
            elif state.get("insight"):
                st.info(state["insight"])
