"""Open-mention state.

A ``MentionSession`` exists only while a trigger is open; the controller
holds ``Optional[MentionSession]`` and None means closed. Sessions are
immutable: navigation returns a new value.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from tag_mentions.document import Range


@dataclass(frozen=True)
class MentionSession:
    """State of an in-progress mention.

    Attributes:
        anchor_range: Span of the typed trigger text (``#query``).
        query: Word characters typed after the trigger.
        highlighted_index: Highlighted candidate; only meaningful modulo the
            current candidate count.
    """
    anchor_range: Range
    query: str
    highlighted_index: int = 0

    def resolved_index(self, candidate_count: int) -> int:
        """Highlighted index clamped to the current candidate count."""
        if candidate_count <= 0:
            return 0
        return self.highlighted_index % candidate_count

    def navigate_down(self, candidate_count: int) -> "MentionSession":
        """Highlight the next candidate, wrapping from the last to the first."""
        if candidate_count <= 0:
            return self
        index = (self.resolved_index(candidate_count) + 1) % candidate_count
        return replace(self, highlighted_index=index)

    def navigate_up(self, candidate_count: int) -> "MentionSession":
        """Highlight the previous candidate, wrapping from the first to the last."""
        if candidate_count <= 0:
            return self
        index = (self.resolved_index(candidate_count) - 1) % candidate_count
        return replace(self, highlighted_index=index)

    def highlighted(self, candidates: Sequence[str]) -> Optional[str]:
        if not candidates:
            return None
        return candidates[self.resolved_index(len(candidates))]
