"""Document tree model for the tag mention editor.

The tree is an ordered forest of nodes. A node is either a ``Text`` leaf
holding an immutable string, or an ``Element`` with a kind and an ordered
list of children. Tag elements always hold exactly one ``Text`` child with
their display text (``#liver``).

Positions inside the tree are ``Point`` values (a path of child indexes down
to a ``Text`` leaf, plus a character offset) and spans are ``Range`` values
made of two points.

Example:
    doc = [paragraph("See ", tag_element("liver"), " scan")]
    node_string(doc[0])  # -> "See #liver scan"
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

TRIGGER_CHARACTER = "#"

Path = Tuple[int, ...]


class DocumentError(Exception):
    """Base error for document tree and engine failures."""


class InvalidPathError(DocumentError):
    """Raised when a path does not address a node in the tree."""


class StaleRangeError(DocumentError):
    """Raised when a point or range no longer resolves to a valid position."""


class ElementKind(Enum):
    """Closed set of element kinds known to the editor.

    Types coming from outside (``node_from_dict``) that are not listed here
    map to UNKNOWN and keep their raw type name on the element.
    """
    PARAGRAPH = "paragraph"
    TAG = "tag"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, type_name: str) -> "ElementKind":
        for kind in cls:
            if kind.value == type_name and kind is not cls.UNKNOWN:
                return kind
        return cls.UNKNOWN


@dataclass(frozen=True)
class Text:
    """Leaf node with an immutable string payload."""
    text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass
class Element:
    """Element node: a kind plus ordered children.

    Attributes:
        kind: Element kind.
        children: Ordered child nodes.
        character: Tag name for TAG elements (without the trigger character).
        type_name: Raw type name, kept for UNKNOWN elements.
    """
    kind: ElementKind
    children: List["Node"] = field(default_factory=list)
    character: Optional[str] = None
    type_name: Optional[str] = None

    @property
    def type(self) -> str:
        return self.type_name or self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.character is not None:
            data["character"] = self.character
        data["children"] = [child.to_dict() for child in self.children]
        return data


Node = Union[Text, Element]


@dataclass(frozen=True, order=True)
class Point:
    """A position in the tree: path to a Text leaf plus a character offset."""
    path: Path
    offset: int


@dataclass(frozen=True)
class Range:
    """A span between two points. ``anchor`` may come after ``focus``."""
    anchor: Point
    focus: Point

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus

    def edges(self) -> Tuple[Point, Point]:
        """Return (start, end) in document order."""
        if self.focus < self.anchor:
            return self.focus, self.anchor
        return self.anchor, self.focus

    @classmethod
    def collapsed(cls, point: Point) -> "Range":
        return cls(point, point)


def _as_node(value: Union[str, Node]) -> Node:
    if isinstance(value, str):
        return Text(value)
    return value


def paragraph(*children: Union[str, Node]) -> Element:
    """Build a paragraph element; plain strings become Text leaves."""
    nodes = [_as_node(child) for child in children] or [Text("")]
    return Element(ElementKind.PARAGRAPH, nodes)


def tag_element(character: str, trigger: str = TRIGGER_CHARACTER) -> Element:
    """Build a tag entity whose single Text child is ``trigger + character``."""
    return Element(
        ElementKind.TAG,
        [Text(f"{trigger}{character}")],
        character=character,
    )


def initial_document() -> List[Node]:
    """Document a fresh editor starts with."""
    return [paragraph("A line of text in a paragraph.")]


def node_from_dict(data: Dict[str, Any]) -> Node:
    """Build a node from its dict form.

    ``{"text": "..."}`` is a leaf; anything else is an element with a
    ``type``, optional ``character`` and ``children``.
    """
    if "text" in data and "children" not in data:
        return Text(str(data["text"]))

    type_name = str(data.get("type", ""))
    kind = ElementKind.from_type(type_name)
    children = [node_from_dict(child) for child in data.get("children", [])]
    character = data.get("character")

    if kind is ElementKind.TAG and not children and character is not None:
        children = [Text(f"{TRIGGER_CHARACTER}{character}")]

    return Element(
        kind,
        children,
        character=character,
        type_name=type_name if kind is ElementKind.UNKNOWN else None,
    )


def nodes_from_dicts(items: Sequence[Dict[str, Any]]) -> List[Node]:
    return [node_from_dict(item) for item in items]


def node_string(node: Node) -> str:
    """Concatenated text of every leaf under ``node``, in order."""
    if isinstance(node, Text):
        return node.text
    return "".join(node_string(child) for child in node.children)


def get_node(nodes: Sequence[Node], path: Path) -> Node:
    """Return the node at ``path`` under the top-level ``nodes`` list.

    Raises:
        InvalidPathError: If any index along the path is out of range or
            descends into a Text leaf.
    """
    if not path:
        raise InvalidPathError("Empty path does not address a node")

    children: Sequence[Node] = nodes
    node: Optional[Node] = None
    for depth, index in enumerate(path):
        if index < 0 or index >= len(children):
            raise InvalidPathError(f"No node at path {path} (depth {depth})")
        node = children[index]
        if depth < len(path) - 1:
            if not isinstance(node, Element):
                raise InvalidPathError(f"Path {path} descends into a text leaf")
            children = node.children
    return node


def get_parent_children(nodes: List[Node], path: Path) -> List[Node]:
    """Return the children list that holds the node at ``path``."""
    if len(path) == 1:
        return nodes
    parent = get_node(nodes, path[:-1])
    if not isinstance(parent, Element):
        raise InvalidPathError(f"Parent of {path} is not an element")
    return parent.children


def first_leaf_path(node: Node, path: Path) -> Path:
    """Path of the first Text leaf under ``node`` (``node`` itself if it has none)."""
    while isinstance(node, Element) and node.children:
        node = node.children[0]
        path = path + (0,)
    return path
