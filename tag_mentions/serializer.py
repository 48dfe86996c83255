"""Plain-text and markup projections of a document tree.

Both functions are pure and defined for every tree: unknown element kinds
render their children without a wrapper.

Example:
    doc = [paragraph("See "), tag_element("liver"), paragraph(" scan")]
    to_text(doc)    # -> "See #liver scan"
    to_markup(doc)  # -> "See <span>#liver</span> scan"
"""

import html
from typing import Callable, List, Optional, Sequence

from tag_mentions.document import ElementKind, Node, Text, node_string

InlinePredicate = Callable[[Node], bool]


def _default_is_inline(node: Node) -> bool:
    return isinstance(node, Text) or node.kind is ElementKind.TAG


def escape_text(text: str) -> str:
    """Escape ``& < > " '`` for markup output."""
    return html.escape(text, quote=True)


def serialize_node(node: Node) -> str:
    """Markup for one node and everything under it."""
    if isinstance(node, Text):
        return escape_text(node.text)

    children = "".join(serialize_node(child) for child in node.children)

    if node.kind is ElementKind.TAG:
        return f"<span>{children}</span>"
    # paragraphs and unknown kinds carry no wrapper
    return children


def _join_top_level(
    nodes: Sequence[Node],
    render: Callable[[Node], str],
    is_inline: Optional[InlinePredicate],
) -> str:
    inline = is_inline or _default_is_inline
    parts: List[str] = []
    previous_block = False
    for node in nodes:
        block = not (isinstance(node, Text) or inline(node))
        if parts and block and previous_block:
            parts.append("\n")
        parts.append(render(node))
        previous_block = block
    return "".join(parts)


def to_text(nodes: Sequence[Node], is_inline: Optional[InlinePredicate] = None) -> str:
    """Flatten the document to plain text.

    Each top-level node contributes the text of its leaves (tags give their
    display text, e.g. ``#liver``). Two adjacent block nodes are separated by
    one newline; inline nodes join their neighbours directly.
    """
    return _join_top_level(nodes, node_string, is_inline)


def to_markup(nodes: Sequence[Node], is_inline: Optional[InlinePredicate] = None) -> str:
    """Render the document as escaped markup with tags wrapped in ``<span>``."""
    return _join_top_level(nodes, serialize_node, is_inline)
