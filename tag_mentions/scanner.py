"""Trigger detection around the caret.

After every document change the scanner looks at the text just before and
just after a collapsed caret. A mention is open when the word before the
caret, together with the character in front of it, reads ``#word`` and the
caret is not followed by a non-space character.

Example (``|`` is the caret):
    "See #liv|"        -> query "liv"
    "See #liv| scan"   -> query "liv"
    "See #li|v"        -> no trigger (caret inside the token)
    "See #|"           -> no trigger (bare trigger character)
"""

import logging
import re
from functools import lru_cache
from typing import Optional, Pattern

from tag_mentions.document import TRIGGER_CHARACTER, DocumentError
from tag_mentions.engine import UNIT_WORD, EditorEngine
from tag_mentions.session import MentionSession

logger = logging.getLogger(__name__)

_AFTER_PATTERN = re.compile(r"(\s|\Z)")


@lru_cache(maxsize=8)
def trigger_pattern(trigger: str = TRIGGER_CHARACTER) -> Pattern[str]:
    """Pattern for a trigger token: the trigger followed by word characters only."""
    return re.compile(rf"{re.escape(trigger)}(\w+)")


def match_trigger(
    before_text: Optional[str],
    after_text: Optional[str],
    trigger: str = TRIGGER_CHARACTER,
) -> Optional[str]:
    """Return the query when the text around the caret forms an open trigger.

    Args:
        before_text: Text from one character before the previous word
            boundary up to the caret.
        after_text: Text of the single position after the caret ("" at the
            end of the document).
        trigger: Trigger character.

    Returns:
        The word characters after the trigger, or None.
    """
    if not before_text:
        return None

    before_match = trigger_pattern(trigger).fullmatch(before_text)
    if before_match is None:
        return None

    if _AFTER_PATTERN.match(after_text or "") is None:
        return None

    return before_match.group(1)


class TriggerScanner:
    """Decides, for the engine's current selection, whether a mention is open."""

    def __init__(self, trigger: str = TRIGGER_CHARACTER):
        self.trigger = trigger

    def scan(self, engine: EditorEngine) -> Optional[MentionSession]:
        """Return a fresh session for an open trigger, or None.

        Expanded or missing selections never open a session. Positions that
        fail to resolve are treated as "no trigger".
        """
        selection = engine.selection
        if selection is None or not engine.is_range_collapsed(selection):
            return None

        start, _ = engine.range_edges(selection)
        try:
            word_before = engine.before(start, unit=UNIT_WORD)
            if word_before is None:
                return None

            before = engine.before(word_before)
            if before is None:
                return None

            before_range = engine.range(before, start)
            before_text = engine.string(before_range)

            after = engine.after(start)
            after_text = engine.string(engine.range(start, after))
        except DocumentError as e:
            logger.debug(f"Trigger scan skipped: {e}")
            return None

        query = match_trigger(before_text, after_text, self.trigger)
        if query is None:
            return None

        logger.debug(f"Trigger matched {before_text!r} (query {query!r})")
        return MentionSession(anchor_range=before_range, query=query)
