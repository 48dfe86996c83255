"""Mention controller: wires the scanner, candidate list and insertion together.

The controller subscribes to engine changes. Each change re-runs the trigger
scanner, which opens, updates or closes the session. While a session is
open, key events routed through ``handle_key`` drive navigation, acceptance
and cancellation; any other key is left to the editor.

After every committed state change that leaves a session open, position
listeners receive the menu's ``OverlayPosition``.

Example:
    engine = with_tags(DocumentEngine([paragraph("")], selection=caret))
    controller = MentionController(engine)
    engine.insert_text("#liv")
    controller.candidates        # -> ["liv", "liver"]
    controller.handle_key("down")
    controller.handle_key("enter")
    to_text(engine.children)     # -> "#liver "
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from tag_mentions.candidate_filter import filter_candidates
from tag_mentions.config import MentionConfig
from tag_mentions.document import DocumentError
from tag_mentions.engine import EditorEngine
from tag_mentions.insertion import insert_tag
from tag_mentions.keybindings import MentionKeybindingConfig
from tag_mentions.scanner import TriggerScanner
from tag_mentions.session import MentionSession
from tag_mentions.vocabulary import VocabularyStore, load_vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayPosition:
    """Where the suggestion menu goes, in the engine's screen units."""
    top: int
    left: int


@dataclass(frozen=True)
class MenuItem:
    """One row of the suggestion menu."""
    label: str
    tag: str
    highlighted: bool


PositionListener = Callable[[OverlayPosition], None]


class MentionController:
    """Owns the mention session for one engine."""

    def __init__(
        self,
        engine: EditorEngine,
        vocabulary: Optional[VocabularyStore] = None,
        config: Optional[MentionConfig] = None,
        keybindings: Optional[MentionKeybindingConfig] = None,
        on_position: Optional[PositionListener] = None,
    ):
        self.engine = engine
        self.config = config or MentionConfig()
        if vocabulary is None:
            vocabulary = load_vocabulary(self.config.vocabulary_path)
        self.vocabulary = vocabulary
        self.keybindings = keybindings or MentionKeybindingConfig()
        self.scanner = TriggerScanner(self.config.trigger)
        self._session: Optional[MentionSession] = None
        self._position_listeners: List[PositionListener] = []
        if on_position is not None:
            self._position_listeners.append(on_position)

        self._actions = {
            "nav_down": self.navigate_down,
            "nav_up": self.navigate_up,
            "accept": self.accept,
            "cancel": self.cancel,
        }
        engine.subscribe(self.on_change)

    def detach(self) -> None:
        """Stop listening to the engine and close any open session."""
        self.engine.unsubscribe(self.on_change)
        self._session = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[MentionSession]:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def candidates(self) -> List[str]:
        if self._session is None:
            return []
        return filter_candidates(
            self.vocabulary,
            self._session.query,
            limit=self.config.max_candidates,
            include_literal=self.config.include_literal_query,
        )

    @property
    def highlighted_index(self) -> Optional[int]:
        if self._session is None:
            return None
        return self._session.resolved_index(len(self.candidates))

    def menu_items(self) -> List[MenuItem]:
        """Rows for the suggestion menu, labelled with the trigger character."""
        if self._session is None:
            return []
        candidates = self.candidates
        index = self._session.resolved_index(len(candidates))
        return [
            MenuItem(label=f"{self.config.trigger}{tag}", tag=tag, highlighted=i == index)
            for i, tag in enumerate(candidates)
        ]

    def add_position_listener(self, listener: PositionListener) -> None:
        self._position_listeners.append(listener)

    def overlay_position(self) -> Optional[OverlayPosition]:
        """Menu position under the trigger text, or None when closed."""
        if self._session is None:
            return None
        try:
            rect = self.engine.to_screen_rect(self._session.anchor_range)
        except DocumentError as e:
            logger.debug(f"Cannot position mention menu: {e}")
            return None
        return OverlayPosition(top=rect.top + self.config.overlay_offset, left=rect.left)

    def _commit(self, session: Optional[MentionSession]) -> None:
        previous = self._session
        self._session = session

        if session is None:
            if previous is not None:
                logger.debug("Mention session closed")
            return

        if previous is None or previous.query != session.query:
            logger.debug(f"Mention session open for query {session.query!r}")

        position = self.overlay_position()
        if position is None:
            return
        for listener in list(self._position_listeners):
            listener(position)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_change(self, engine: Optional[EditorEngine] = None) -> None:
        """Re-evaluate the trigger after a document or selection change."""
        self._commit(self.scanner.scan(self.engine))

    def handle_key(self, key: str) -> bool:
        """Route a key press to the open session.

        Args:
            key: Key name in prompt_toolkit syntax ("down", "enter", ...).

        Returns:
            True if the key was consumed; False lets the editor handle it.
        """
        if self._session is None:
            return False

        action = self.keybindings.action_for_key(key)
        logger.debug(f"Key {key!r} with mention open -> {action}")
        if action is None:
            return False

        self._actions[action]()
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def navigate_down(self) -> bool:
        if self._session is None:
            return False
        self._commit(self._session.navigate_down(len(self.candidates)))
        return True

    def navigate_up(self) -> bool:
        if self._session is None:
            return False
        self._commit(self._session.navigate_up(len(self.candidates)))
        return True

    def accept(self) -> bool:
        """Insert the highlighted candidate and close the session.

        Returns:
            True if a tag was inserted. The session closes either way.
        """
        session = self._session
        if session is None:
            return False

        tag = session.highlighted(self.candidates) or ""
        inserted = insert_tag(self.engine, session.anchor_range, tag, self.config.trigger)
        if not inserted:
            logger.debug(f"Mention accept for {tag!r} did not insert anything")
        self._commit(None)
        return inserted

    def cancel(self) -> bool:
        if self._session is None:
            return False
        self._commit(None)
        return True
