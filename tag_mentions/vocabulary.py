"""Vocabulary of known tags.

The built-in list is the clinical vocabulary the editor ships with. A
project can point ``MentionConfig.vocabulary_path`` at its own list, either
a JSON array of strings or a text file with one tag per line.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


DEFAULT_TAGS = [
    "liver",
    "pain",
    "right",
    "left",
    "pancreas",
    "kidney",
    "brain",
    "severe_pain",
    "tumour",
    "cancer",
    "MRI",
    "CT",
    "male",
    "female",
    "bone",
    "shoulder",
    "hip",
    "XRAY",
    "knee",
    "spine",
    "head",
    "abdomen",
    "contrast",
    "fragment",
    "detached",
    "injury",
    "torn",
    "rotator",
    "cuff",
    "abdominal",
    "dilatation",
]


class VocabularyStore:
    """Static ordered list of known tag strings.

    Order is significant: candidate lists keep it. Blank entries and exact
    duplicates are dropped, first occurrence wins.
    """

    def __init__(self, tags: Iterable[str]):
        seen = set()
        ordered = []
        for tag in tags:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.add(tag)
                ordered.append(tag)
        self._tags: Tuple[str, ...] = tuple(ordered)

    @property
    def tags(self) -> Tuple[str, ...]:
        return self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        if not isinstance(tag, str):
            return False
        lowered = tag.lower()
        return any(entry.lower() == lowered for entry in self._tags)

    def __repr__(self) -> str:
        return f"VocabularyStore({len(self._tags)} tags)"

    @classmethod
    def default(cls) -> "VocabularyStore":
        return cls(DEFAULT_TAGS)

    @classmethod
    def from_file(cls, path: str) -> "VocabularyStore":
        """Load a vocabulary from a JSON array or a one-tag-per-line text file.

        Text lines starting with "#" are comments.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If a JSON file does not hold a list.
        """
        file_path = Path(path).expanduser()
        content = file_path.read_text(encoding="utf-8")

        if file_path.suffix.lower() == ".json":
            data = json.loads(content)
            if not isinstance(data, list):
                raise ValueError(f"Vocabulary file {path} must contain a JSON list")
            return cls(data)

        return cls(line for line in content.splitlines() if not line.lstrip().startswith("#"))


def load_vocabulary(path: Optional[str] = None) -> VocabularyStore:
    """Load the vocabulary at ``path``, falling back to the built-in list.

    Args:
        path: Vocabulary file, or None for the built-in list.

    Returns:
        The loaded store. Unreadable or malformed files log a warning and
        give the default vocabulary.
    """
    if not path:
        return VocabularyStore.default()

    try:
        store = VocabularyStore.from_file(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load vocabulary from {path}: {e}")
        return VocabularyStore.default()

    logger.info(f"Loaded {len(store)} tags from {path}")
    return store
