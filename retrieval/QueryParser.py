# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: QueryParser.py
# -----------------------------------------------------------------------------
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

_TOKEN_RE = re.compile(r"[\w']+", re.UNICODE)
_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")
_RECENCY_RE = re.compile(
    r"\b(latest|recent|recently|newest|most recent|this year|last year|current|upcoming)\b",
    re.IGNORECASE,
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%A, %B %d, %Y",
)


@dataclass(frozen=True)
class TemporalIntent:
    is_temporal: bool
    year: Optional[int] = None


def extract_terms(query: str) -> List[str]:
    """Case-folded tokens longer than two characters, first occurrence order."""
    tokens = (t.strip("'").casefold() for t in _TOKEN_RE.findall(query or ""))
    return list(dict.fromkeys(t for t in tokens if len(t) > 2))


def normalise_phrase(query: str) -> str:
    return " ".join((query or "").split()).casefold()


def detect_temporal(query: str, today: Optional[date] = None) -> TemporalIntent:
    """
    Recency language ("latest", "this year", ...) or an explicit 4-digit year.
    "this year" / "last year" resolve against today.
    """
    today = today or date.today()
    text = query or ""

    year_match = _YEAR_RE.search(text)
    if year_match:
        return TemporalIntent(True, int(year_match.group(1)))

    lowered = text.lower()
    if "this year" in lowered or "current year" in lowered:
        return TemporalIntent(True, today.year)
    if "last year" in lowered:
        return TemporalIntent(True, today.year - 1)

    if _RECENCY_RE.search(text):
        return TemporalIntent(True, None)
    return TemporalIntent(False, None)


def parse_meeting_date(value: Optional[str]) -> Optional[date]:
    """
    Best-effort parse of the upstream date string. Returns None when nothing
    date-like can be recovered; a bare year maps to January 1st of that year.
    """
    raw = (value or "").strip()
    if not raw:
        return None

    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    year_match = _YEAR_RE.search(raw)
    if year_match:
        return date(int(year_match.group(1)), 1, 1)
    return None
