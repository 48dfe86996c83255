"""In-memory rich-text engine the mention controller drives.

The controller only talks to the engine through the ``EditorEngine``
protocol: position queries (``before``, ``after``, ``range``, ``string``),
selection helpers, and a handful of mutation primitives. ``DocumentEngine``
is the reference implementation used by tests and by embedders that do not
bring their own engine.

Positions are resolved against a flattened view of the tree:
- every character of a Text leaf is one position,
- a void element is a single position and contributes no text,
- the boundary between two top-level nodes is a single position and
  contributes no text.

Word unit: a word character matches ``\\w``. Stepping one word backwards skips
leading non-word characters, then consumes word characters up to the next
non-word character. A block boundary always ends the step.
"""

import copy
import logging
import re
from bisect import bisect_right
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Protocol, Tuple

from tag_mentions.document import (
    Element,
    Node,
    Path,
    Point,
    Range,
    StaleRangeError,
    Text,
    first_leaf_path,
    get_node,
    get_parent_children,
    initial_document,
)

logger = logging.getLogger(__name__)

UNIT_CHARACTER = "character"
UNIT_WORD = "word"

_WORD_CHARACTER = re.compile(r"\w")
_VOID_PLACEHOLDER = "\ufffc"
_BLOCK_BREAK = "\n"


def is_word_character(char: str) -> bool:
    return bool(_WORD_CHARACTER.match(char))


def word_distance(chars: Iterable[str]) -> int:
    """Number of positions one word step covers.

    Args:
        chars: Characters in stepping order (reversed text for a backwards
            step, plain text for a forward step).

    Returns:
        Distance in positions; 0 only when ``chars`` is empty.
    """
    distance = 0
    started = False
    for char in chars:
        if char == _BLOCK_BREAK:
            if distance == 0:
                distance = 1
            break
        if is_word_character(char):
            started = True
        elif started:
            break
        distance += 1
    return distance


@dataclass(frozen=True)
class ScreenRect:
    """Rectangle on a character-cell grid."""
    top: int
    left: int
    width: int
    height: int


@dataclass
class _Segment:
    kind: str  # "text", "void" or "break"
    path: Path
    start: int
    length: int
    node_path: Path = ()
    leaf_length: int = 0

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class _Layout:
    segments: List[_Segment]
    flat: str
    block_starts: List[int]

    @property
    def length(self) -> int:
        return len(self.flat)


class EditorEngine(Protocol):
    """Operations the mention controller needs from an editing engine."""

    selection: Optional[Range]

    def before(self, point: Point, unit: str = UNIT_CHARACTER) -> Optional[Point]: ...

    def after(self, point: Point, unit: str = UNIT_CHARACTER) -> Optional[Point]: ...

    def range(self, start: Point, end: Optional[Point] = None) -> Range: ...

    def string(self, at: Range) -> str: ...

    def is_range_collapsed(self, at: Range) -> bool: ...

    def range_edges(self, at: Range) -> Tuple[Point, Point]: ...

    def select(self, at: Range) -> None: ...

    def insert_node(self, node: Node) -> None: ...

    def insert_text(self, text: str) -> None: ...

    def move(self, distance: int = 1) -> None: ...

    def is_inline(self, element: Element) -> bool: ...

    def is_void(self, element: Element) -> bool: ...

    def normalize(self) -> None: ...

    def to_screen_rect(self, at: Range) -> ScreenRect: ...

    def batch(self): ...

    def subscribe(self, listener: Callable[["EditorEngine"], None]) -> None: ...

    def unsubscribe(self, listener: Callable[["EditorEngine"], None]) -> None: ...


class DocumentEngine:
    """Reference ``EditorEngine`` over an in-memory node tree.

    Every mutation runs inside ``batch()``: listeners hear about it once the
    outermost batch exits, and a batch that raises restores the tree and
    selection it started with.
    """

    def __init__(
        self,
        children: Optional[List[Node]] = None,
        selection: Optional[Range] = None,
    ):
        self.children: List[Node] = list(children) if children is not None else initial_document()
        self.selection: Optional[Range] = selection
        self._listeners: List[Callable[["DocumentEngine"], None]] = []
        self._batch_depth = 0
        self._dirty = False
        self.normalize()

    # ------------------------------------------------------------------
    # Extension hooks
    # ------------------------------------------------------------------

    def is_inline(self, element: Element) -> bool:
        return False

    def is_void(self, element: Element) -> bool:
        return False

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[["DocumentEngine"], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[["DocumentEngine"], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @contextmanager
    def batch(self) -> Iterator["DocumentEngine"]:
        """Group mutations into one change notification, all or nothing."""
        snapshot_children = copy.deepcopy(self.children)
        snapshot_selection = self.selection
        self._batch_depth += 1
        try:
            yield self
        except Exception:
            self.children[:] = snapshot_children
            self.selection = snapshot_selection
            if self._batch_depth == 1:
                self._dirty = False
            raise
        finally:
            self._batch_depth -= 1

        if self._batch_depth == 0 and self._dirty:
            self._dirty = False
            for listener in list(self._listeners):
                listener(self)

    def _changed(self) -> None:
        self._dirty = True

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _layout(self) -> _Layout:
        segments: List[_Segment] = []
        parts: List[str] = []
        block_starts: List[int] = []
        index = 0
        for i, node in enumerate(self.children):
            if i > 0:
                segments.append(_Segment("break", (i,), index, 1, node_path=(i,)))
                parts.append(_BLOCK_BREAK)
                index += 1
            block_starts.append(index)
            index = self._collect(node, (i,), segments, parts, index)
        return _Layout(segments, "".join(parts), block_starts)

    def _collect(
        self,
        node: Node,
        path: Path,
        segments: List[_Segment],
        parts: List[str],
        index: int,
    ) -> int:
        if isinstance(node, Text):
            segments.append(_Segment("text", path, index, len(node.text), node_path=path))
            parts.append(node.text)
            return index + len(node.text)

        if self.is_void(node):
            leaf_path = first_leaf_path(node, path)
            leaf = get_node(self.children, leaf_path)
            leaf_length = len(leaf.text) if isinstance(leaf, Text) else 0
            segments.append(
                _Segment("void", leaf_path, index, 1, node_path=path, leaf_length=leaf_length)
            )
            parts.append(_VOID_PLACEHOLDER)
            return index + 1

        for j, child in enumerate(node.children):
            index = self._collect(child, path + (j,), segments, parts, index)
        return index

    def _index_of(self, point: Point, layout: _Layout) -> int:
        for segment in layout.segments:
            if segment.kind == "break" or segment.path != point.path:
                continue
            if segment.kind == "void":
                return segment.start if point.offset <= 0 else segment.end
            if 0 <= point.offset <= segment.length:
                return segment.start + point.offset
            break
        raise StaleRangeError(f"Point {point} does not resolve in the document")

    def _point_at(self, index: int, layout: _Layout) -> Optional[Point]:
        if index < 0 or index > layout.length:
            return None
        for segment in layout.segments:
            if segment.kind == "text" and segment.start <= index <= segment.end:
                return Point(segment.path, index - segment.start)
        for segment in layout.segments:
            if segment.kind == "void":
                if index == segment.start:
                    return Point(segment.path, 0)
                if index == segment.end:
                    return Point(segment.path, segment.leaf_length)
        return None

    def _require_point(self, index: int, layout: _Layout) -> Point:
        point = self._point_at(index, layout)
        if point is None:
            raise StaleRangeError(f"No position at index {index}")
        return point

    def _text_point_at(self, index: int, layout: _Layout) -> Point:
        for segment in layout.segments:
            if segment.kind == "text" and segment.start <= index <= segment.end:
                return Point(segment.path, index - segment.start)
        raise StaleRangeError(f"No editable text position at index {index}")

    def _span(self, at: Range, layout: _Layout) -> Tuple[int, int]:
        first = self._index_of(at.anchor, layout)
        second = self._index_of(at.focus, layout)
        return min(first, second), max(first, second)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def before(self, point: Point, unit: str = UNIT_CHARACTER) -> Optional[Point]:
        """Position one unit before ``point``, or None at the document start."""
        layout = self._layout()
        index = self._index_of(point, layout)
        if index == 0:
            return None
        if unit == UNIT_WORD:
            target = index - word_distance(reversed(layout.flat[:index]))
        elif unit == UNIT_CHARACTER:
            target = index - 1
        else:
            raise ValueError(f"Unknown unit: {unit}")
        return self._point_at(target, layout)

    def after(self, point: Point, unit: str = UNIT_CHARACTER) -> Optional[Point]:
        """Position one unit after ``point``, or None at the document end."""
        layout = self._layout()
        index = self._index_of(point, layout)
        if index >= layout.length:
            return None
        if unit == UNIT_WORD:
            target = index + word_distance(layout.flat[index:])
        elif unit == UNIT_CHARACTER:
            target = index + 1
        else:
            raise ValueError(f"Unknown unit: {unit}")
        return self._point_at(target, layout)

    def range(self, start: Point, end: Optional[Point] = None) -> Range:
        return Range(start, end if end is not None else start)

    def string(self, at: Range) -> str:
        """Text covered by ``at``; void elements and block boundaries add nothing."""
        layout = self._layout()
        start, end = self._span(at, layout)
        parts = []
        for segment in layout.segments:
            if segment.kind != "text":
                continue
            lo = max(start, segment.start)
            hi = min(end, segment.end)
            if lo < hi:
                parts.append(layout.flat[lo:hi])
        return "".join(parts)

    def is_range_collapsed(self, at: Range) -> bool:
        return at.is_collapsed

    def range_edges(self, at: Range) -> Tuple[Point, Point]:
        return at.edges()

    def to_screen_rect(self, at: Range) -> ScreenRect:
        """Cell rectangle of ``at``: row is the top-level node, column the offset in it."""
        layout = self._layout()
        start, end = self._span(at, layout)
        row = max(bisect_right(layout.block_starts, start) - 1, 0)
        left = start - layout.block_starts[row] if layout.block_starts else 0
        return ScreenRect(top=row, left=left, width=end - start, height=1)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def select(self, at: Range) -> None:
        layout = self._layout()
        self._span(at, layout)
        with self.batch():
            self.selection = at
            self._changed()

    def delete_range(self, at: Range) -> None:
        """Remove the content covered by ``at`` and collapse the selection to its start."""
        layout = self._layout()
        start, end = self._span(at, layout)
        with self.batch():
            if start < end:
                self._delete_span(start, end, layout)
                self.normalize()
                layout = self._layout()
            self.selection = Range.collapsed(self._require_point(start, layout))
            self._changed()

    def insert_node(self, node: Node) -> None:
        """Insert ``node`` at the selection, replacing it when expanded.

        Inline nodes split the Text leaf under the caret. A void node leaves
        the caret inside it; ``move()`` steps past it. Block nodes go after
        the current top-level node.
        """
        if isinstance(node, Text):
            self.insert_text(node.text)
            return
        if self.selection is None:
            raise StaleRangeError("No selection to insert at")

        with self.batch():
            if not self.selection.is_collapsed:
                self.delete_range(self.selection)

            layout = self._layout()
            point = self._text_point_at(self._index_of(self.selection.anchor, layout), layout)

            if self.is_inline(node):
                leaf = get_node(self.children, point.path)
                if not isinstance(leaf, Text):
                    raise StaleRangeError(f"Cannot insert inside void element at {point.path}")
                siblings = get_parent_children(self.children, point.path)
                position = point.path[-1]
                siblings[position:position + 1] = [
                    Text(leaf.text[:point.offset]),
                    node,
                    Text(leaf.text[point.offset:]),
                ]
                node_path = point.path[:-1] + (position + 1,)
                self.normalize()
                if self.is_void(node):
                    caret = Point(first_leaf_path(node, node_path), 0)
                else:
                    caret = Point(point.path[:-1] + (position + 2,), 0)
            else:
                top = point.path[0] + 1
                self.children.insert(top, node)
                self.normalize()
                caret = Point(first_leaf_path(node, (top,)), 0)

            self.selection = Range.collapsed(caret)
            self._changed()

    def insert_text(self, text: str) -> None:
        """Insert ``text`` at the caret, replacing the selection when expanded."""
        if self.selection is None:
            raise StaleRangeError("No selection to insert at")
        if not text:
            return

        with self.batch():
            if not self.selection.is_collapsed:
                self.delete_range(self.selection)

            layout = self._layout()
            point = self._text_point_at(self._index_of(self.selection.anchor, layout), layout)
            leaf = get_node(self.children, point.path)
            if not isinstance(leaf, Text):
                raise StaleRangeError(f"Cannot type inside void element at {point.path}")

            self._replace(point.path, Text(leaf.text[:point.offset] + text + leaf.text[point.offset:]))
            self.selection = Range.collapsed(Point(point.path, point.offset + len(text)))
            self._changed()

    def move(self, distance: int = 1) -> None:
        """Collapse the selection ``distance`` positions from its focus."""
        if self.selection is None:
            return
        layout = self._layout()
        index = self._index_of(self.selection.focus, layout)
        target = min(max(index + distance, 0), layout.length)
        point = self._require_point(target, layout)
        with self.batch():
            self.selection = Range.collapsed(point)
            self._changed()

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    def _replace(self, path: Path, node: Node) -> None:
        get_parent_children(self.children, path)[path[-1]] = node

    def _delete_span(self, start: int, end: int, layout: _Layout) -> None:
        # Walk backwards so earlier paths stay valid while later nodes change.
        for segment in reversed(layout.segments):
            lo = max(start, segment.start)
            hi = min(end, segment.end)
            if lo >= hi:
                continue
            if segment.kind == "text":
                leaf = get_node(self.children, segment.path)
                cut_from = lo - segment.start
                cut_to = hi - segment.start
                self._replace(segment.path, Text(leaf.text[:cut_from] + leaf.text[cut_to:]))
            elif segment.kind == "void":
                siblings = get_parent_children(self.children, segment.node_path)
                del siblings[segment.node_path[-1]]
            else:
                self._merge_into_previous(segment.node_path[0])

    def _merge_into_previous(self, index: int) -> None:
        previous = self.children[index - 1]
        current = self.children[index]
        if not isinstance(previous, Element) or self.is_void(previous):
            return
        if isinstance(current, Element) and not self.is_void(current):
            previous.children.extend(current.children)
        else:
            previous.children.append(current)
        del self.children[index]

    def normalize(self) -> None:
        """Restore tree invariants after a mutation.

        Inside non-void elements adjacent Text leaves are merged and every
        inline element is surrounded by Text leaves (possibly empty). Void
        elements keep at least one Text child.
        """
        for node in self.children:
            if isinstance(node, Element):
                self._normalize_element(node)

    def _normalize_element(self, element: Element) -> None:
        if self.is_void(element):
            if not element.children:
                element.children.append(Text(""))
            return

        normalized: List[Node] = []
        for child in element.children:
            if isinstance(child, Element):
                self._normalize_element(child)
                if self.is_inline(child) and (not normalized or not isinstance(normalized[-1], Text)):
                    normalized.append(Text(""))
                normalized.append(child)
            elif normalized and isinstance(normalized[-1], Text):
                normalized[-1] = Text(normalized[-1].text + child.text)
            else:
                normalized.append(child)

        if not normalized or (isinstance(normalized[-1], Element) and self.is_inline(normalized[-1])):
            normalized.append(Text(""))
        element.children[:] = normalized
