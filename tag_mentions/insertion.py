"""Tag entity insertion.

``with_tags`` teaches an engine that tag elements are inline voids;
``insert_tag`` swaps a matched trigger span for a tag entity.
"""

import logging

from tag_mentions.document import (
    TRIGGER_CHARACTER,
    DocumentError,
    Element,
    ElementKind,
    Range,
    tag_element,
)
from tag_mentions.engine import EditorEngine

logger = logging.getLogger(__name__)


def is_tag(element: object) -> bool:
    return isinstance(element, Element) and element.kind is ElementKind.TAG


def with_tags(engine: EditorEngine) -> EditorEngine:
    """Register tag elements as inline and void on ``engine``.

    Other elements keep the answers of the engine's own predicates.
    """
    is_inline = engine.is_inline
    is_void = engine.is_void

    def _is_inline(element: Element) -> bool:
        return is_tag(element) or is_inline(element)

    def _is_void(element: Element) -> bool:
        return is_tag(element) or is_void(element)

    engine.is_inline = _is_inline
    engine.is_void = _is_void
    engine.normalize()
    return engine


def insert_tag(
    engine: EditorEngine,
    anchor_range: Range,
    tag_text: str,
    trigger: str = TRIGGER_CHARACTER,
) -> bool:
    """Replace ``anchor_range`` with a tag entity followed by a space.

    Runs as one engine batch: listeners see a single change, and when the
    anchor no longer resolves nothing is modified.

    Args:
        engine: Engine holding the document.
        anchor_range: Span of the typed trigger text.
        tag_text: Tag name without the trigger character.
        trigger: Trigger character prefixed to the display text.

    Returns:
        True if the tag was inserted, False for empty tag text or a stale
        anchor range.
    """
    if not tag_text:
        return False

    try:
        with engine.batch():
            engine.select(anchor_range)
            engine.insert_node(tag_element(tag_text, trigger))
            engine.move()
            engine.insert_text(" ")
    except DocumentError as e:
        logger.warning(f"Could not insert tag '{tag_text}': {e}")
        return False

    logger.debug(f"Inserted tag {trigger}{tag_text}")
    return True
