"""
Tests for model output normalization.
"""

import json

import pytest

from av_insights.analysis import ARTICLE_ANALYSIS_SCHEMA, ArticleAnalysis
from av_insights.exceptions import AnalysisError


def _output(**overrides) -> dict:
    data = {
        "av_relevance": True,
        "relevance_score": 0.8,
        "summary": ["First point", "Second point", "Third point"],
        "companies": ["Waymo", "Zoox"],
        "category": "partnerships",
        "sentiment": "positive",
        "impact": "high",
        "regulatory_relevance": False,
        "themes": ["robotaxi"],
    }
    data.update(overrides)
    return data


class TestSchema:

    def test_all_properties_required(self):
        assert set(ARTICLE_ANALYSIS_SCHEMA["required"]) == set(ARTICLE_ANALYSIS_SCHEMA["properties"])
        assert ARTICLE_ANALYSIS_SCHEMA["additionalProperties"] is False


class TestFromModelOutput:

    def test_valid_json_text(self):
        analysis = ArticleAnalysis.from_model_output(json.dumps(_output()))

        assert analysis.av_relevance is True
        assert analysis.relevance_score == 0.8
        assert analysis.companies == ["Waymo", "Zoox"]
        assert analysis.category == "partnerships"

    def test_code_fenced_json(self):
        text = "```json\n" + json.dumps(_output()) + "\n```"
        assert ArticleAnalysis.from_model_output(text).impact == "high"

    def test_score_clamped(self):
        assert ArticleAnalysis.from_model_output(_output(relevance_score=1.7)).relevance_score == 1.0
        assert ArticleAnalysis.from_model_output(_output(relevance_score=-2)).relevance_score == 0.0
        assert ArticleAnalysis.from_model_output(_output(relevance_score="n/a")).relevance_score == 0.0

    def test_list_limits(self):
        analysis = ArticleAnalysis.from_model_output(_output(
            summary=[f"s{i}" for i in range(8)],
            companies=[f"c{i}" for i in range(30)],
            themes=[f"t{i}" for i in range(12)],
        ))

        assert len(analysis.summary) == 5
        assert len(analysis.companies) == 25
        assert len(analysis.themes) == 10

    def test_unknown_enums_fall_back(self):
        analysis = ArticleAnalysis.from_model_output(_output(
            category="weather", sentiment="ecstatic", impact=None,
        ))

        assert analysis.category == "other"
        assert analysis.sentiment == "neutral"
        assert analysis.impact == "low"

    def test_booleans_and_lists_coerced(self):
        analysis = ArticleAnalysis.from_model_output(_output(
            av_relevance="true", regulatory_relevance=0, companies="Waymo", themes=None,
        ))

        assert analysis.av_relevance is True
        assert analysis.regulatory_relevance is False
        assert analysis.companies == ["Waymo"]
        assert analysis.themes == []

    def test_missing_fields_take_defaults(self):
        analysis = ArticleAnalysis.from_model_output({"av_relevance": True})

        assert analysis.relevance_score == 0.0
        assert analysis.summary == []
        assert analysis.category == "other"

    def test_unknown_keys_ignored(self):
        analysis = ArticleAnalysis.from_model_output(_output(extra="ignored"))
        assert "extra" not in analysis.to_record()

    @pytest.mark.parametrize("text", ["", "   ", "not json", "[1, 2, 3]"])
    def test_unusable_output_raises(self, text):
        with pytest.raises(AnalysisError):
            ArticleAnalysis.from_model_output(text)


class TestNotRelevant:

    def test_zeroed(self):
        record = ArticleAnalysis.not_relevant().to_record()

        assert record == {
            "av_relevance": False,
            "relevance_score": 0.0,
            "summary": [],
            "companies": [],
            "category": "other",
            "sentiment": "neutral",
            "impact": "low",
            "regulatory_relevance": False,
            "themes": [],
        }
