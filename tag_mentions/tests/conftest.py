"""Pytest fixtures for tag mention tests.

Run tests with: pytest tag_mentions/tests/
"""

import os

import pytest

from tag_mentions.controller import MentionController
from tag_mentions.document import Point, Range, paragraph
from tag_mentions.engine import DocumentEngine
from tag_mentions.insertion import with_tags
from tag_mentions.vocabulary import VocabularyStore


@pytest.fixture(autouse=True)
def clean_mention_env(monkeypatch):
    """Keep TAG_MENTIONS_* variables from the caller's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("TAG_MENTIONS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_engine():
    """Build a tag-aware engine over one paragraph with the caret at ``caret``.

    The caret defaults to the end of the paragraph text.
    """
    def _make(text: str = "", caret=None) -> DocumentEngine:
        offset = len(text) if caret is None else caret
        engine = DocumentEngine(
            [paragraph(text)],
            selection=Range.collapsed(Point((0, 0), offset)),
        )
        return with_tags(engine)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine("")


@pytest.fixture
def controller(engine):
    return MentionController(engine, vocabulary=VocabularyStore.default())


@pytest.fixture
def type_text(engine):
    """Type text one character at a time, like a user would."""
    def _type(text: str) -> None:
        for char in text:
            engine.insert_text(char)
    return _type
