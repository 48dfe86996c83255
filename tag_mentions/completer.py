"""Tag completer for plain-text prompt_toolkit buffers.

Gives single-line and multi-line prompt_toolkit inputs the same ``#tag``
suggestions as the rich editor, without tag entities: accepting a
completion writes ``#tag `` as text.

Example usage:
    "Findings: #liv"  -> offers "#liv" (new tag) and "#liver"
    "Findings: #zzz"  -> offers "#zzz" (new tag)
"""

import logging
from typing import Callable, Iterable, Optional

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from tag_mentions.candidate_filter import filter_candidates
from tag_mentions.config import MentionConfig
from tag_mentions.engine import word_distance
from tag_mentions.scanner import match_trigger
from tag_mentions.vocabulary import VocabularyStore

logger = logging.getLogger(__name__)


def find_trigger(text_before: str, text_after: str, trigger: str) -> Optional[tuple[str, str]]:
    """Locate an open trigger at the end of ``text_before``.

    Returns:
        ``(token, query)`` where token is the ``#query`` text to replace, or
        None when the cursor is not at the end of a trigger token.
    """
    distance = word_distance(reversed(text_before))
    if distance == 0 or distance >= len(text_before):
        return None

    token = text_before[-(distance + 1):]
    query = match_trigger(token, text_after[:1], trigger)
    if query is None:
        return None
    return token, query


class TagCompleter(Completer):
    """Complete tag names after the trigger character.

    Candidates come from the vocabulary provider and follow the same
    filtering as the rich editor's menu, including the literal query entry.
    """

    def __init__(
        self,
        vocabulary_provider: Optional[Callable[[], VocabularyStore]] = None,
        config: Optional[MentionConfig] = None,
    ):
        """Initialize the completer.

        Args:
            vocabulary_provider: Callback returning the current vocabulary.
                Defaults to the built-in vocabulary.
            config: Mention settings (trigger, limits).
        """
        self._vocabulary_provider = vocabulary_provider or VocabularyStore.default
        self.config = config or MentionConfig()

    def set_vocabulary_provider(self, provider: Callable[[], VocabularyStore]) -> None:
        self._vocabulary_provider = provider

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """Get tag completions for the current document."""
        found = find_trigger(
            document.text_before_cursor,
            document.text_after_cursor,
            self.config.trigger,
        )
        if found is None:
            return

        token, query = found
        vocabulary = self._vocabulary_provider()
        trigger = self.config.trigger

        for tag in filter_candidates(
            vocabulary,
            query,
            limit=self.config.max_candidates,
            include_literal=self.config.include_literal_query,
        ):
            yield Completion(
                f"{trigger}{tag} ",
                start_position=-len(token),
                display=f"{trigger}{tag}",
                display_meta="tag" if tag in vocabulary else "new tag",
            )
