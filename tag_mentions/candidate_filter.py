"""Candidate list for an open mention."""

from typing import Iterable, List

MAX_CANDIDATES = 10


def filter_candidates(
    vocabulary: Iterable[str],
    query: str,
    limit: int = MAX_CANDIDATES,
    include_literal: bool = True,
) -> List[str]:
    """Return the tags offered for ``query``.

    Entries whose lowercase form starts with the lowercase query are kept in
    vocabulary order. When ``include_literal`` is set and the query is
    non-empty but not among the matches (case-insensitively), the query
    itself is put first so a new tag can be committed. The result never
    holds more than ``limit`` entries.

    Example:
        filter_candidates(["liver", "left"], "l")   # -> ["l", "liver", "left"]
        filter_candidates(["liver"], "LIVER")        # -> ["liver"]
        filter_candidates(["liver"], "zzz")          # -> ["zzz"]
    """
    if limit <= 0:
        return []

    lowered = query.lower()
    matches = [entry for entry in vocabulary if entry.lower().startswith(lowered)]

    if not include_literal or not query:
        return matches[:limit]

    if any(entry.lower() == lowered for entry in matches[:limit]):
        return matches[:limit]

    return [query] + matches[:limit - 1]
