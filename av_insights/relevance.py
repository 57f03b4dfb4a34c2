"""
AV relevance heuristic - cheap keyword gate in front of the LLM classifier.

Terms are grouped into three tiers:
- strong anchors: unambiguous AV terms and company names, one hit passes
- weak anchors: terms that also show up outside AV, need corroboration
- boosters: generic industry terms that only count next to a weak anchor

The gate only exists to save model calls, so it leans towards letting
borderline text through. The LLM makes the real relevance decision.
"""

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_NON_WORD_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass(frozen=True)
class RelevanceRules:
    """A versioned set of heuristic term tiers."""
    version: str
    strong: tuple[str, ...]
    weak: tuple[str, ...]
    boosters: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict) -> "RelevanceRules":
        """Build rules from a mapping with version/strong/weak/boosters keys."""
        try:
            return cls(
                version=str(data["version"]),
                strong=tuple(t.lower() for t in data["strong"]),
                weak=tuple(t.lower() for t in data["weak"]),
                boosters=tuple(t.lower() for t in data["boosters"]),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid relevance rules: {e}") from e

    @classmethod
    def from_file(cls, path: Path | str) -> "RelevanceRules":
        """Load rules from a JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "strong": list(self.strong),
            "weak": list(self.weak),
            "boosters": list(self.boosters),
        }


DEFAULT_RULES = RelevanceRules(
    version="2025.1",
    strong=(
        "robotaxi",
        "robo-taxi",
        "driverless",
        "self-driving",
        "self driving",
        "autonomous vehicle",
        "autonomous vehicles",
        "automated driving",
        "autonomous trucking",
        "autonomous truck",
        "waymo",
        "cruise",
        "zoox",
        "mobileye",
        "aurora",
        "kodiak",
        "wayve",
        "pony.ai",
        "pony ai",
        "tusimple",
        "plusai",
        "plus ai",
        "fsd",
        "full self-driving",
        "full self driving",
    ),
    weak=(
        "adas",
        "autonomy",
        "lidar",
        "disengagement",
        "safety driver",
        "automated vehicle",
        "baidu apollo",
        "apollo",
    ),
    boosters=(
        "nhtsa",
        "unece",
        "regulation",
        "ride-hailing",
        "autonomous fleet",
        "v2x",
        "v2v",
        "perception",
        "path planning",
        "localization",
        "hd map",
        "hd maps",
        "sensor fusion",
        "radar",
        "camera",
        "autopilot",
        "tesla",
        "uber",
        "lyft",
    ),
)


@lru_cache(maxsize=1024)
def _word_pattern(term: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def _matches(term: str, text: str) -> bool:
    """
    Check a single term against lowercased text.

    Phrases and tokens with punctuation ("pony.ai", "robo-taxi") use plain
    containment; clean single words use word boundaries so "av" never
    matches inside "average".
    """
    if _NON_WORD_RE.search(term):
        return term in text
    return _word_pattern(term).search(text) is not None


def looks_relevant(text: str | None, rules: RelevanceRules = DEFAULT_RULES) -> bool:
    """Return True if text is plausibly about autonomous vehicles."""
    if not text:
        return False
    lowered = text.lower()

    if any(_matches(term, lowered) for term in rules.strong):
        return True

    weak_hits = sum(1 for term in rules.weak if _matches(term, lowered))
    if weak_hits == 0:
        return False
    if weak_hits >= 2:
        return True

    return any(_matches(term, lowered) for term in rules.boosters)


def load_rules(path: str | None) -> RelevanceRules:
    """Return rules from path when one is configured, otherwise the defaults."""
    if not path:
        return DEFAULT_RULES
    return RelevanceRules.from_file(path)
