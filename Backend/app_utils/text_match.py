"""
Text Matching Utilities
Cheap lexical signals used to decide whether two issue reports describe
the same incident: token overlap, incident categories and departments.
"""
import json
import re
from typing import Iterable, List, Optional, Set

from app_utils.constants import INCIDENT_CATEGORIES

_NON_ALNUM = re.compile(r"[^a-z0-9\s]+")


def normalize_reason(reason: Optional[str]) -> str:
    return reason.strip().lower() if reason else ""


def tokenize_for_match(value: Optional[str]) -> List[str]:
    """Lowercase, strip punctuation and keep tokens longer than two characters."""
    if not value:
        return []
    cleaned = _NON_ALNUM.sub(" ", value.lower())
    return [token for token in cleaned.split() if len(token) > 2]


def tokens_similar(a_tokens: List[str], b_tokens: List[str], threshold: float = 0.75) -> bool:
    """
    True when enough of the tokens of `a` also appear in `b`.
    The overlap is measured against the shorter of the two lists, so a
    short report fully contained in a longer one still matches.
    """
    if not a_tokens or not b_tokens:
        return False

    set_b = set(b_tokens)
    overlap = sum(1 for token in a_tokens if token in set_b)
    min_length = min(len(a_tokens), len(b_tokens))
    return overlap / min_length >= threshold


def reasons_match(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    if a == b:
        return True
    return tokens_similar(tokenize_for_match(a), tokenize_for_match(b), 0.6)


def detect_categories(*texts: Optional[str]) -> Set[str]:
    matches = set()
    for text in texts:
        if not text:
            continue
        for key, pattern in INCIDENT_CATEGORIES:
            if pattern.search(text):
                matches.add(key)
    return matches


def parse_assigned_departments(raw) -> List[str]:
    """
    Read the assigned_department column.
    Accepts a list, a JSON list, a JSON string or a comma separated string.
    """
    if not raw:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        parsed = None

    if isinstance(parsed, list):
        return [str(item) for item in parsed]
    if isinstance(parsed, str) and parsed.strip():
        return [parsed.strip()]

    return [part.strip() for part in str(raw).split(",") if part.strip()]


def dump_assigned_departments(departments: Iterable[str]) -> Optional[str]:
    departments = list(departments or [])
    return json.dumps(departments) if departments else None
