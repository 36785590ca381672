# --- Aircraft Performance Calculator: HTTP API (FastAPI) ----------------------
# Purpose: Expose the formula registry and per-formula evaluation sessions.
# (1) list/describe formulas, (2) open a session and edit its inputs with live
# recomputation, (3) ask the insight provider to interpret the current result.
# ------------------------------------------------------------------------------

from __future__ import annotations
import logging
import uuid
from collections import OrderedDict
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from aerocalc import (
    EvaluationSession,
    InvalidInputKey,
    OpenAIInsightProvider,
    Registry,
    SessionNotFound,
    UnknownFormulaId,
    __version__,
    load_registry,
)
from aerocalc.config import configure_logging, load_settings
from aerocalc.insight import InsightProvider

# Load .env / environment once; registry errors abort start-up here.
_settings = load_settings()
configure_logging(_settings.log_level)
logger = logging.getLogger("api")


class SessionStore:
    """
    In-memory sessions for the lifetime of the process (nothing is persisted).
    Holds at most `max_sessions`; opening one more evicts the least recently used.
    """

    def __init__(self, registry: Registry, provider: InsightProvider, max_sessions: int = 1000):
        self.registry = registry
        self.provider = provider
        self.max_sessions = max(1, max_sessions)
        self._sessions: "OrderedDict[str, EvaluationSession]" = OrderedDict()

    def open(self, formula_id: str) -> tuple[str, EvaluationSession]:
        formula = self.registry.get(formula_id)
        while len(self._sessions) >= self.max_sessions:
            old, _ = self._sessions.popitem(last=False)
            logger.info("Session store full; evicted %s", old)
        sid = uuid.uuid4().hex
        self._sessions[sid] = EvaluationSession.create(formula, self.provider)
        return sid, self._sessions[sid]

    def get(self, sid: str) -> EvaluationSession:
        try:
            session = self._sessions[sid]
        except KeyError:
            raise SessionNotFound(sid) from None
        self._sessions.move_to_end(sid)
        return session

    def close(self, sid: str) -> None:
        self.get(sid)
        del self._sessions[sid]

    def __len__(self) -> int:
        return len(self._sessions)


_registry = load_registry(_settings.catalog_path)
_store = SessionStore(_registry, OpenAIInsightProvider(_settings.openai_api_key, _settings.openai_model),
                      max_sessions=_settings.max_sessions)
logger.info("Registry ready with %d formulas", len(_registry))

app = FastAPI(title="Aircraft Performance Calculator API", version=__version__)

# ----------------------------- Schemas ----------------------------------------
class OpenSessionRequest(BaseModel):
    formula_id: str

class SetInputRequest(BaseModel):
    # Raw text from an input box, or a number; unparsable text evaluates as 0.
    id: str
    value: Union[float, str, None] = None

class InsightResponse(BaseModel):
    insight: Optional[str]
    state: str
    discarded: bool

# ----------------------------- Helpers ----------------------------------------
def _session_or_404(sid: str) -> EvaluationSession:
    try:
        return _store.get(sid)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

def _payload(sid: str, session: EvaluationSession) -> Dict[str, Any]:
    return {"session_id": sid, **session.snapshot()}

# ----------------------------- Routes -----------------------------------------
@app.get("/health")
def health(): return {"ok": True, "formulas": len(_store.registry), "sessions": len(_store)}

@app.get("/formulas")
def list_formulas():
    """Registry listing, grouped into display sections."""
    reg = _store.registry
    return {
        "count": len(reg),
        "sections": [
            {"title": s.title, "formulas": [reg.get(fid).to_dict() for fid in s.formula_ids]}
            for s in reg.sections()
        ],
        "items": reg.list_formulas(),
    }

@app.get("/formulas/{formula_id}")
def get_formula(formula_id: str):
    try:
        return _store.registry.get(formula_id).to_dict()
    except UnknownFormulaId as e:
        raise HTTPException(status_code=404, detail=str(e))

# Session routes are async so that edits and insight resolution share one event
# loop; an edit landing while an insight is awaited marks that insight stale.
@app.post("/sessions")
async def open_session(req: OpenSessionRequest):
    try:
        sid, session = _store.open(req.formula_id)
    except UnknownFormulaId as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _payload(sid, session)

@app.get("/sessions/{sid}")
async def get_session(sid: str):
    return _payload(sid, _session_or_404(sid))

@app.delete("/sessions/{sid}")
async def close_session(sid: str):
    try:
        _store.close(sid)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}

@app.post("/sessions/{sid}/inputs")
async def set_input(sid: str, req: SetInputRequest):
    session = _session_or_404(sid)
    try:
        session.set_input(req.id, "" if req.value is None else req.value)
    except InvalidInputKey as e:
        # Client and descriptor disagree on the input set.
        raise HTTPException(status_code=422, detail=str(e))
    return _payload(sid, session)

@app.post("/sessions/{sid}/reset")
async def reset_session(sid: str):
    session = _session_or_404(sid)
    session.reset()
    return _payload(sid, session)

@app.post("/sessions/{sid}/insight", response_model=InsightResponse)
async def request_insight(sid: str):
    """
    One-shot insight for the current values. `discarded` is true when the values
    changed while the provider was answering (or a request was already pending)
    and nothing was stored.
    """
    session = _session_or_404(sid)
    text = await session.request_insight()
    return InsightResponse(insight=text, state=session.state.value, discarded=text is None)
