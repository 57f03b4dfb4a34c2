"""
Article analysis result - the structured output contract for the LLM.

ARTICLE_ANALYSIS_SCHEMA is sent to the provider; whatever comes back goes
through ArticleAnalysis.from_model_output, the one place model output is
coerced into a typed result before anything is persisted.
"""

import json
import math
from typing import Any, Literal

from pydantic import BaseModel, ValidationError, field_validator

from .exceptions import AnalysisError

SCHEMA_NAME = "article_analysis"

CATEGORIES = (
    "safety", "regulation", "hardware", "software", "partnerships",
    "incidents", "business", "stocks", "markets", "other",
)
SENTIMENTS = ("positive", "neutral", "negative")
IMPACTS = ("low", "medium", "high")

MAX_SUMMARY_ITEMS = 5
MAX_COMPANIES = 25
MAX_THEMES = 10

ARTICLE_ANALYSIS_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "av_relevance": {"type": "boolean"},
        "relevance_score": {"type": "number", "minimum": 0, "maximum": 1},
        "summary": {
            "type": "array",
            "minItems": 3,
            "maxItems": MAX_SUMMARY_ITEMS,
            "items": {"type": "string"},
        },
        "companies": {
            "type": "array",
            "maxItems": MAX_COMPANIES,
            "items": {"type": "string"},
        },
        "category": {"type": "string", "enum": list(CATEGORIES)},
        "sentiment": {"type": "string", "enum": list(SENTIMENTS)},
        "impact": {"type": "string", "enum": list(IMPACTS)},
        "regulatory_relevance": {"type": "boolean"},
        "themes": {
            "type": "array",
            "maxItems": MAX_THEMES,
            "items": {"type": "string"},
        },
    },
    "required": [
        "av_relevance",
        "relevance_score",
        "summary",
        "companies",
        "category",
        "sentiment",
        "impact",
        "regulatory_relevance",
        "themes",
    ],
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _to_str_list(value: Any, limit: int) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    items = [str(v).strip() for v in value if v is not None]
    return [item for item in items if item][:limit]


def _to_choice(value: Any, choices: tuple[str, ...], fallback: str) -> str:
    if isinstance(value, str):
        value = value.strip().lower()
        if value in choices:
            return value
    return fallback


class ArticleAnalysis(BaseModel):
    """Canonical classification result for one article."""

    av_relevance: bool = False
    relevance_score: float = 0.0
    summary: list[str] = []
    companies: list[str] = []
    category: Literal[CATEGORIES] = "other"
    sentiment: Literal[SENTIMENTS] = "neutral"
    impact: Literal[IMPACTS] = "low"
    regulatory_relevance: bool = False
    themes: list[str] = []

    @field_validator("av_relevance", "regulatory_relevance", mode="before")
    @classmethod
    def _coerce_bool(cls, v):
        return _to_bool(v)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        try:
            score = float(v)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(score):
            return 0.0
        return min(1.0, max(0.0, score))

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v):
        return _to_str_list(v, MAX_SUMMARY_ITEMS)

    @field_validator("companies", mode="before")
    @classmethod
    def _coerce_companies(cls, v):
        return _to_str_list(v, MAX_COMPANIES)

    @field_validator("themes", mode="before")
    @classmethod
    def _coerce_themes(cls, v):
        return _to_str_list(v, MAX_THEMES)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v):
        return _to_choice(v, CATEGORIES, "other")

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, v):
        return _to_choice(v, SENTIMENTS, "neutral")

    @field_validator("impact", mode="before")
    @classmethod
    def _coerce_impact(cls, v):
        return _to_choice(v, IMPACTS, "low")

    @classmethod
    def not_relevant(cls) -> "ArticleAnalysis":
        """Zeroed result recorded when an article never reaches the model."""
        return cls()

    @classmethod
    def from_model_output(cls, output: str | dict) -> "ArticleAnalysis":
        """
        Parse and normalize raw model output.

        Accepts the response text (optionally wrapped in a markdown code
        fence) or an already-decoded dict. Missing fields take their
        defaults; out-of-range values are clamped or replaced.

        Raises:
            AnalysisError: If the output is empty or not a JSON object
        """
        if isinstance(output, str):
            text = output.strip()
            if not text:
                raise AnalysisError("Model returned empty output")
            if text.startswith("```"):
                text = text.strip("`")
                if text.lower().startswith("json"):
                    text = text[4:]
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise AnalysisError(f"Model output is not valid JSON: {e}") from e
        else:
            data = output

        if not isinstance(data, dict):
            raise AnalysisError(f"Model output is {type(data).__name__}, expected an object")

        known = {k: v for k, v in data.items() if k in cls.model_fields}
        try:
            return cls.model_validate(known)
        except ValidationError as e:
            raise AnalysisError(f"Model output failed validation: {e}") from e

    def to_record(self) -> dict:
        """Column values for ArticleRepository.save_classification."""
        return self.model_dump()
