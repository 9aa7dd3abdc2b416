# salestrend/llm.py
from __future__ import annotations
import json
import logging
from typing import Optional, Sequence

from openai import OpenAI

from .config import settings
from .domain import TrendPoint
from .exceptions import ExternalInsightUnavailable

logger = logging.getLogger(__name__)

UNAVAILABLE_INSIGHT = "AI insight unavailable."

SYSTEM_PROMPT = (
    "You are a retail sales analyst. "
    "Base your analysis only on the provided monthly figures and keep it business-friendly."
)


def build_trend_prompt(trend: Sequence[TrendPoint]) -> str:
    series = [
        {"month": p.label, "sales": round(p.value, 2), "projected": p.projected}
        for p in trend
    ]
    return (
        f"Analyze this sales trend data: {json.dumps(series)}.\n"
        "Provide a short, business-friendly insight (2 sentences max) about trends and next steps."
    )


class TextGenerator:
    """Thin wrapper around the OpenAI chat API; any failure surfaces as ExternalInsightUnavailable."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.api_key and self.api_key.strip())

    def _get_client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key.strip())
        return self._client

    def generate(self, prompt: str) -> str:
        if not self.configured:
            raise ExternalInsightUnavailable("No OpenAI API key configured")

        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
            content = response.choices[0].message.content if response.choices else ""
        except Exception as e:
            raise ExternalInsightUnavailable(f"OpenAI call failed: {e}") from e

        content = (content or "").strip()
        if not content:
            raise ExternalInsightUnavailable("OpenAI returned an empty response")
        return content


def describe_trend(generator: Optional[TextGenerator], trend: Sequence[TrendPoint]) -> str:
    """Prose insight for a trend, or the placeholder when the provider is missing or fails."""
    if generator is None:
        return UNAVAILABLE_INSIGHT
    try:
        return generator.generate(build_trend_prompt(trend))
    except ExternalInsightUnavailable as e:
        logger.warning("AI insight skipped: %s", e)
        return UNAVAILABLE_INSIGHT
