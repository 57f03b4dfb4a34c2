"""
Text normalization for feed content.
"""

import re

MIN_CLEAN_LENGTH = 20

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[^>]+(>|$)")
_WHITESPACE_RE = re.compile(r"\s+")

# Only the handful of entities feeds actually emit; anything else stays literal
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)


def clean_text(raw: str | None) -> str | None:
    """
    Strip markup from feed content and collapse whitespace.

    Returns None when nothing meaningful is left (fewer than 20 characters),
    so callers can tell "no usable content" apart from an error.
    """
    if not raw:
        return None

    text = str(raw)
    text = _SCRIPT_RE.sub(" ", text)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)

    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)

    text = _WHITESPACE_RE.sub(" ", text).strip()

    if len(text) < MIN_CLEAN_LENGTH:
        return None
    return text


def truncate(text: str | None, max_chars: int, marker: str = "\n\n[TRUNCATED]") -> str:
    """Cut text to max_chars, appending a marker when anything was dropped."""
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker
