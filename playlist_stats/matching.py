"""
Fuzzy matching rules shared by the query engine and the stores.

Artist lookups are case-insensitive whole-word matches where spaces and
hyphens are interchangeable and every token may carry an abbreviation period,
so "Dr Dre", "Dr. Dre" and "dr-dre" all find "Dr. Dre". Title and contributor
lookups are case-insensitive substring matches.

Patterns only use syntax shared by Python ``re`` and MongoDB's PCRE engine.
"""

import re
from typing import Any, Dict, List, Optional

_TOKEN_SPLIT = re.compile(r"[\s\-]+")
_TOKEN_JOIN = r"[\s\-]+"
_WORD_START = r"(?<!\w)"
_WORD_END = r"(?!\w)"


def artist_pattern(query: str) -> Optional[str]:
    """Regex for an artist query, or None when the query is blank."""
    tokens = [t.rstrip(".") for t in _TOKEN_SPLIT.split(query.strip())]
    tokens = [t for t in tokens if t]
    if not tokens:
        return None
    body = _TOKEN_JOIN.join(re.escape(t) + r"\.?" for t in tokens)
    return f"{_WORD_START}{body}{_WORD_END}"


def contains_pattern(query: str) -> Optional[str]:
    """Regex for a literal substring, or None when the query is blank."""
    if not query.strip():
        return None
    return re.escape(query.strip())


def regex_filter(field: str, pattern: str) -> Dict[str, Any]:
    return {field: {"$regex": pattern, "$options": "i"}}


def matches_artist(query: str, value: str) -> bool:
    pattern = artist_pattern(query)
    if pattern is None:
        return False
    return re.search(pattern, value, re.IGNORECASE) is not None


def split_artist_credits(artist: str) -> List[str]:
    """'A, B ,C' -> ['A', 'B', 'C']; empty credits are dropped."""
    return [a.strip() for a in artist.split(",") if a.strip()]


def title_base(title: str) -> str:
    """Title text before the first '-' or '(' ("Song (Live)" -> "Song")."""
    return title.split("-", 1)[0].split("(", 1)[0].strip()
