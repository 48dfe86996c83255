"""Tests for the text and markup serializers."""

from tag_mentions.document import (
    Element,
    ElementKind,
    Text,
    node_from_dict,
    paragraph,
    tag_element,
)
from tag_mentions.serializer import escape_text, serialize_node, to_markup, to_text


class TestToText:
    """Tests for plain-text flattening."""

    def test_top_level_tag_joins_neighbours(self):
        doc = [paragraph("See "), tag_element("liver"), paragraph(" scan")]
        assert to_text(doc) == "See #liver scan"

    def test_tag_inside_paragraph(self):
        doc = [paragraph("See ", tag_element("liver"), " scan")]
        assert to_text(doc) == "See #liver scan"

    def test_blocks_separated_by_newline(self):
        assert to_text([paragraph("a"), paragraph("b")]) == "a\nb"

    def test_empty_document(self):
        assert to_text([]) == ""

    def test_custom_inline_predicate(self):
        assert to_text([paragraph("a"), paragraph("b")], is_inline=lambda node: True) == "ab"


class TestToMarkup:
    """Tests for markup rendering."""

    def test_tag_wrapped_in_span(self):
        doc = [paragraph("See "), tag_element("liver"), paragraph(" scan")]
        assert to_markup(doc) == "See <span>#liver</span> scan"

    def test_tag_inside_paragraph(self):
        doc = [paragraph("See ", tag_element("liver"), " scan")]
        assert to_markup(doc) == "See <span>#liver</span> scan"

    def test_text_is_escaped(self):
        doc = [paragraph("<b> & \"q\" 'x'")]
        assert to_markup(doc) == "&lt;b&gt; &amp; &quot;q&quot; &#x27;x&#x27;"

    def test_escape_text(self):
        assert escape_text("a < b") == "a &lt; b"

    def test_unknown_element_unwrapped(self):
        quote = node_from_dict({"type": "quote", "children": [{"text": "hi"}]})
        assert quote.kind is ElementKind.UNKNOWN
        assert serialize_node(quote) == "hi"
        assert to_markup([quote, paragraph("there")]) == "hi\nthere"

    def test_deep_nesting(self):
        node = Text("deep")
        for _ in range(200):
            node = Element(ElementKind.UNKNOWN, [node], type_name="div")
        assert to_markup([node]) == "deep"
        assert to_text([node]) == "deep"

    def test_empty_document(self):
        assert to_markup([]) == ""
