import re
import unicodedata
from difflib import SequenceMatcher
from typing import Iterable, Optional

FUZZY_MATCH_RATIO = 0.8
MIN_CONTAINED_LENGTH = 4


def normalize_name(value: str) -> str:
    """Lowercase, strip accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", value or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", stripped).strip().lower()


def names_match(left: str, right: str) -> bool:
    a, b = normalize_name(left), normalize_name(right)
    if not a or not b:
        return False
    if a == b:
        return True
    shorter, longer = sorted((a, b), key=len)
    if len(shorter) >= MIN_CONTAINED_LENGTH and shorter in longer:
        return True
    return SequenceMatcher(None, a, b).ratio() >= FUZZY_MATCH_RATIO


def find_match(name: str, candidates: Iterable[str]) -> Optional[str]:
    """Return the candidate ``name`` refers to, preferring exact matches."""
    candidates = list(candidates)
    target = normalize_name(name)
    for candidate in candidates:
        if normalize_name(candidate) == target:
            return candidate
    for candidate in candidates:
        if names_match(name, candidate):
            return candidate
    return None


def clean_content(content: str) -> str:
    return re.sub(r"\s+", " ", content).strip()


def truncate(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."
