# -----------------------------------------------------------------------------
# Insight providers
# Purpose:
#   Turn a formula result and its inputs into a short natural-language
#   interpretation for pilots and students.
# Contract:
#   - explain() never raises; any client failure yields `fallback_message`.
#   - OpenAIInsightProvider makes one chat completion per request (no retries).
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Mapping, Optional, Protocol

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "AI insight temporarily unavailable."
EMPTY_MESSAGE = "No insight available."
DEFAULT_MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = (
    "You are an expert aerodynamics engineer and flight instructor. "
    "You explain calculated flight-performance numbers to pilots and students."
)


class InsightProvider(Protocol):
    fallback_message: str

    async def explain(self, formula_title: str, inputs: Mapping[str, float],
                      result: float, result_unit: str) -> str:
        ...


def build_prompt(formula_title: str, inputs: Mapping[str, float], result: float, result_unit: str) -> str:
    input_str = ", ".join(f"{k}: {v}" for k, v in inputs.items())
    return (
        f'The user just calculated "{formula_title}".\n'
        f"Inputs provided: {input_str}.\n"
        f"Result: {result:.2f} {result_unit}.\n\n"
        "Give a brief, high-level insight (2-3 sentences at most) into what this result "
        "means for the aircraft's performance. Is it efficient, dangerous or standard? "
        "Keep it professional but accessible. Do not repeat the formula; focus on the implication."
    )


class OpenAIInsightProvider:
    """
    Insight text from an OpenAI chat model. Never raises: every failure,
    a missing API key included, is logged and answered with the fallback.
    """
    fallback_message = FALLBACK_MESSAGE

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model = model
        self._client: AsyncOpenAI | None = None

    def _client_instance(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("OPENAI_API_KEY not set.")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def explain(self, formula_title: str, inputs: Mapping[str, float],
                      result: float, result_unit: str) -> str:
        try:
            client = self._client_instance()
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(formula_title, inputs, result, result_unit)},
                ],
            )
            text = (resp.choices[0].message.content or "").strip()
        except Exception:
            logger.exception("Insight request for %r failed", formula_title)
            return self.fallback_message
        return text or EMPTY_MESSAGE


class StaticInsightProvider:
    # Offline stand-in: same text for every request.
    fallback_message = FALLBACK_MESSAGE

    def __init__(self, text: str = EMPTY_MESSAGE):
        self.text = text

    async def explain(self, formula_title: str, inputs: Mapping[str, float],
                      result: float, result_unit: str) -> str:
        return self.text
