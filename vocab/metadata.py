"""
Shape the free-form `extra` JSON of an entry into typed flashcard metadata.

The result is tagged with "type" (the part of speech) so clients can render
noun, verb and adjective/adverb details without guessing.
"""
import re
from typing import Any, Dict, List, Optional

from .models import PartOfSpeech

# ASCII comma and semicolon plus the full-width semicolon
COMPARISON_DELIMITERS = re.compile(r"[,;；]")

NOUN_FIELDS = ("gender", "plural", "suffix")
VERB_FIELDS = ("present_form", "preterite_form", "perfect_form", "properties", "noun_form")


def extract_string(data: Dict[str, Any], key: str) -> Optional[str]:
    """Trimmed string value, or None when missing, not a string, or blank."""
    value = data.get(key)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def split_comparison_forms(value: Any) -> List[str]:
    if isinstance(value, str):
        parts = COMPARISON_DELIMITERS.split(value)
    elif isinstance(value, list):
        parts = [item for item in value if isinstance(item, str)]
    else:
        return []
    return [part.strip() for part in parts if part.strip()]


def build_metadata(part_of_speech: str, extra: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(extra, dict):
        return None

    if part_of_speech == PartOfSpeech.NOUN:
        fields = {key: extract_string(extra, key) for key in NOUN_FIELDS}
    elif part_of_speech == PartOfSpeech.VERB:
        fields = {key: extract_string(extra, key) for key in VERB_FIELDS}
    elif part_of_speech == PartOfSpeech.ADJECTIVE_ADVERB:
        fields = {
            "attribute": extract_string(extra, "attribute"),
            "comparison_forms": split_comparison_forms(extra.get("comparison_forms")),
        }
    else:
        return None

    return {"type": str(part_of_speech), **fields}
