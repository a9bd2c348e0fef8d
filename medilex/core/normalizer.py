"""
Response normalization for term lookups.

Turns the free-form text of a completion into definition, key points and
sources. A malformed payload never fails a lookup; it only reduces the
richness of the result.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, List

from medilex.utils.logger import get_logger

logger = get_logger("normalizer")

DEFAULT_DEFINITION = "Definition not available."

# Opening fence with optional language tag, or closing fence
_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?|\n?```")


@dataclass
class NormalizedContent:
    """Structured lookup content extracted from model output."""
    definition: str
    key_points: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    structured: bool = True


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers and surrounding whitespace."""
    return _FENCE_PATTERN.sub("", text).strip()


def _as_string_list(value: Any) -> List[str]:
    """Coerce a payload field to a list of strings without rejecting anything."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)
                for item in value if item is not None]
    if isinstance(value, str):
        return [value]
    return [json.dumps(value, ensure_ascii=False)]


def normalize_response(raw_text: str) -> NormalizedContent:
    """
    Normalize raw completion text into structured lookup content.
    
    Args:
        raw_text: Text returned by the provider, possibly fenced
        
    Returns:
        NormalizedContent; `structured` is False when the text could not be
        parsed and was used verbatim as the definition
    """
    cleaned = strip_code_fences(raw_text or "")
    
    try:
        data = json.loads(cleaned)
    except ValueError:
        logger.warning("Failed to parse JSON response", excerpt=cleaned[:200])
        return NormalizedContent(definition=cleaned, structured=False)
    
    if data is None:
        logger.warning("JSON response is null", excerpt=cleaned[:200])
        return NormalizedContent(definition=cleaned, structured=False)
    
    if not isinstance(data, dict):
        # Parsed, but carries none of the expected fields
        logger.warning("JSON response is not an object", excerpt=cleaned[:200])
        return NormalizedContent(definition=DEFAULT_DEFINITION)
    
    definition = data.get("definition")
    if not isinstance(definition, str):
        definition = json.dumps(definition, ensure_ascii=False) if definition else ""
    
    return NormalizedContent(
        definition=definition or DEFAULT_DEFINITION,
        key_points=_as_string_list(data.get("keyPoints")),
        sources=_as_string_list(data.get("sources")),
    )
