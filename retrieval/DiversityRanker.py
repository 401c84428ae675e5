# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: DiversityRanker.py
# -----------------------------------------------------------------------------
from typing import Dict, List, Sequence

from vectorstore.SearchResult import SearchResult


def sort_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Score descending; ties go to the most recently created record."""
    by_recency = sorted(results, key=lambda r: r.created_at or "", reverse=True)
    return sorted(by_recency, key=lambda r: r.similarity_score, reverse=True)


def diversify(
        results: Sequence[SearchResult],
        limit: int,
        max_per_meeting: int = 2,
        *,
        presorted: bool = False,
) -> List[SearchResult]:
    """
    Two passes over the sorted results: first one slot per meeting, then fill
    the remaining slots while keeping at most max_per_meeting per meeting.
    Output keeps the input ranking (score descending unless presorted=True,
    in which case the caller's order is kept).
    """
    if limit <= 0:
        return []

    ordered = list(results) if presorted else sort_results(results)
    picked: List[int] = []
    per_meeting: Dict[str, int] = {}

    for i, r in enumerate(ordered):
        if len(picked) >= limit:
            break
        if per_meeting.get(r.meeting_id, 0) == 0:
            picked.append(i)
            per_meeting[r.meeting_id] = 1

    for i, r in enumerate(ordered):
        if len(picked) >= limit:
            break
        if i in picked:
            continue
        if per_meeting.get(r.meeting_id, 0) < max_per_meeting:
            picked.append(i)
            per_meeting[r.meeting_id] = per_meeting.get(r.meeting_id, 0) + 1

    return [ordered[i] for i in sorted(picked)]
