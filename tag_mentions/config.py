"""Mention settings.

Settings come from, in priority order:
1. Environment variables: TAG_MENTIONS_<FIELD>=<value>
2. Project file: .tag_mentions/config.json
3. User file: ~/.tag_mentions/config.json
4. Defaults

Example config.json:
    {
        "trigger": "#",
        "max_candidates": 10,
        "include_literal_query": true,
        "vocabulary_path": "tags.txt",
        "overlay_offset": 1
    }
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from tag_mentions.candidate_filter import MAX_CANDIDATES
from tag_mentions.document import TRIGGER_CHARACTER
from tag_mentions.engine import is_word_character

logger = logging.getLogger(__name__)

ENV_PREFIX = "TAG_MENTIONS_"
DEFAULT_PROJECT_PATH = ".tag_mentions/config.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def user_config_path(filename: str) -> str:
    """Path of ``filename`` in the user-level ~/.tag_mentions directory."""
    return str(Path.home() / ".tag_mentions" / filename)


def read_first_json_object(
    paths: Sequence[str], label: str
) -> Optional[Tuple[str, Dict[str, Any]]]:
    """Read the first existing file in ``paths`` that holds a JSON object.

    Unreadable files, bad JSON and non-object payloads are logged and
    skipped.

    Returns:
        ``(path, data)`` for the file that was used, or None.
    """
    for path in paths:
        config_path = Path(path)
        if not config_path.exists():
            continue
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {label} {path}: {e}")
            continue
        except OSError as e:
            logger.warning(f"Error reading {label} {path}: {e}")
            continue

        if not isinstance(data, dict):
            logger.warning(f"{label.capitalize()} {path} must be a JSON object - ignoring")
            continue

        logger.info(f"Loaded {label} from {path}")
        return path, data

    return None


@dataclass
class MentionConfig:
    """Settings for trigger detection and the candidate list.

    Attributes:
        trigger: Single non-word character that opens a mention.
        max_candidates: Most entries shown in the suggestion menu.
        include_literal_query: Offer the typed query itself as a new tag.
        vocabulary_path: Vocabulary file; None uses the built-in list.
        overlay_offset: Rows between the trigger text and the menu.
    """
    trigger: str = TRIGGER_CHARACTER
    max_candidates: int = MAX_CANDIDATES
    include_literal_query: bool = True
    vocabulary_path: Optional[str] = None
    overlay_offset: int = 1

    def __post_init__(self):
        if len(self.trigger) != 1 or is_word_character(self.trigger) or self.trigger.isspace():
            logger.warning(
                f"Invalid trigger {self.trigger!r} - must be one non-word character, "
                f"using {TRIGGER_CHARACTER!r}"
            )
            self.trigger = TRIGGER_CHARACTER
        if self.max_candidates < 1:
            logger.warning(
                f"Invalid max_candidates {self.max_candidates} - using {MAX_CANDIDATES}"
            )
            self.max_candidates = MAX_CANDIDATES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MentionConfig":
        """Create config from a dictionary.

        Unknown keys are ignored with a warning; values that fail to convert
        keep their default.
        """
        converters = {
            "trigger": str,
            "max_candidates": int,
            "include_literal_query": _parse_bool,
            "vocabulary_path": lambda value: str(value) if value else None,
            "overlay_offset": int,
        }

        kwargs = {}
        for key, value in data.items():
            if key.startswith("_"):
                continue
            converter = converters.get(key)
            if converter is None:
                logger.warning(f"Unknown mention setting '{key}' - ignoring")
                continue
            try:
                kwargs[key] = converter(value)
            except (TypeError, ValueError) as e:
                logger.warning(f"Invalid value for mention setting '{key}': {e}")

        return cls(**kwargs)

    @classmethod
    def from_env(cls) -> Optional["MentionConfig"]:
        """Create config from TAG_MENTIONS_<FIELD> environment variables.

        Returns:
            Config built from the variables that are set, or None if none are.
        """
        data = cls.env_overrides()
        if not data:
            return None
        return cls.from_dict(data)

    @staticmethod
    def env_overrides() -> Dict[str, str]:
        data = {}
        for f in fields(MentionConfig):
            env_key = f"{ENV_PREFIX}{f.name.upper()}"
            if env_key in os.environ:
                data[f.name] = os.environ[env_key]
        return data

    @classmethod
    def from_file(
        cls,
        project_path: str = DEFAULT_PROJECT_PATH,
        user_path: Optional[str] = None,
    ) -> Optional["MentionConfig"]:
        """Load config from the first readable JSON file.

        Args:
            project_path: Project-level config path.
            user_path: User-level config path (default: ~/.tag_mentions/config.json).

        Returns:
            MentionConfig if a config file was found and loaded, None otherwise.
        """
        if user_path is None:
            user_path = user_config_path("config.json")

        found = read_first_json_object([project_path, user_path], "mention config")
        if found is None:
            return None
        return cls.from_dict(found[1])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(
    project_path: str = DEFAULT_PROJECT_PATH,
    user_path: Optional[str] = None,
) -> MentionConfig:
    """Load mention settings with the env > project > user > defaults chain."""
    config = MentionConfig.from_file(project_path, user_path) or MentionConfig()

    env_data = MentionConfig.env_overrides()
    if env_data:
        merged = config.to_dict()
        merged.update(env_data)
        config = MentionConfig.from_dict(merged)
        logger.info(f"Applied environment mention overrides: {list(env_data.keys())}")

    return config
