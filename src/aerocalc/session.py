# -----------------------------------------------------------------------------
# Evaluation session
# Purpose:
#   Live state for one displayed formula: current input values, the derived
#   result and an optional cached insight tied to those values.
# Rules:
#   - result is always formula.evaluate(values); it is recomputed on every edit.
#   - every edit clears the insight and bumps a generation counter.
#   - an insight that resolves after an edit is discarded as stale.
#   - at most one insight request is in flight per session.
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import math
import re
from enum import Enum
from typing import Any, Dict, Optional

from .errors import InvalidInputKey
from .insight import InsightProvider
from .types import Formula

logger = logging.getLogger(__name__)

# Leading numeric literal, as accepted by a browser's parseFloat
_NUM = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_number(raw: Any) -> float:
    """
    Parse user input into a finite float.
    Leading whitespace is skipped and the longest numeric prefix is used
    ("12.5kg" -> 12.5). Anything unparsable, or not finite, becomes 0.0.
    """
    if isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:  # int too large for a float
            return 0.0
    else:
        m = _NUM.match(str(raw).lstrip())
        if not m:
            return 0.0
        value = float(m.group(0))
    return value if math.isfinite(value) else 0.0


class InsightState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"


class EvaluationSession:
    def __init__(self, formula: Formula, provider: InsightProvider):
        self._formula = formula
        self._provider = provider
        self._values: Dict[str, float] = formula.defaults()
        self._result = formula.evaluate(self._values)
        self._insight: Optional[str] = None
        self._state = InsightState.IDLE
        self._generation = 0

    @classmethod
    def create(cls, formula: Formula, provider: InsightProvider) -> "EvaluationSession":
        return cls(formula, provider)

    # ---- read-only views -----------------------------------------------------

    @property
    def formula_id(self) -> str:
        return self._formula.id

    @property
    def formula(self) -> Formula:
        return self._formula

    @property
    def values(self) -> Dict[str, float]:
        return dict(self._values)

    @property
    def result(self) -> float:
        return self._result

    @property
    def insight(self) -> Optional[str]:
        return self._insight

    @property
    def state(self) -> InsightState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    # ---- edits ---------------------------------------------------------------

    def set_input(self, input_id: str, raw: Any) -> None:
        if input_id not in self._values:
            raise InvalidInputKey(self._formula.id, input_id)
        self._values[input_id] = parse_number(raw)
        self._changed()

    def reset(self) -> None:
        self._values = self._formula.defaults()
        self._changed()

    def _changed(self):
        self._result = self._formula.evaluate(self._values)
        self._insight = None
        self._generation += 1

    # ---- insight -------------------------------------------------------------

    async def request_insight(self) -> Optional[str]:
        """
        Ask the provider to interpret the current result.
        Returns the stored insight, or None when the call was ignored (another
        request in flight) or its answer went stale before it arrived.
        """
        if self._state is InsightState.LOADING:
            logger.warning("Insight already loading for %s; request ignored", self.formula_id)
            return None

        generation = self._generation
        snapshot = dict(self._values)
        result = self._result
        self._state = InsightState.LOADING
        logger.info("Requesting insight for %s (generation %d)", self.formula_id, generation)
        try:
            text = await self._provider.explain(
                self._formula.title, snapshot, result, self._formula.result_unit)
        except Exception:
            logger.exception("Insight provider raised for %s", self.formula_id)
            text = self._provider.fallback_message
        finally:
            self._state = InsightState.IDLE

        if generation != self._generation:
            logger.warning("Discarding stale insight for %s (generation %d, now %d)",
                           self.formula_id, generation, self._generation)
            return None
        self._insight = text
        return text

    def snapshot(self) -> Dict[str, Any]:
        return {
            "formula_id": self.formula_id,
            "values": self.values,
            "result": self._result,
            "result_unit": self._formula.result_unit,
            "insight": self._insight,
            "state": self._state.value,
            "generation": self._generation,
        }
