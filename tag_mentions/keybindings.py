"""Keys that drive the mention menu.

While a mention is open four actions are live: move the highlight up or
down, accept the highlighted tag, and close the menu. Every action is bound
to a key or to a list of alternatives, written in prompt_toolkit key syntax
("down", "c-n", "escape").

Bindings are read from, in priority order:
1. TAG_MENTIONS_KEY_<ACTION>=<key> environment variables
   (space separated for alternatives: TAG_MENTIONS_KEY_NAV_DOWN="down c-n")
2. .tag_mentions/keybindings.json in the project
3. ~/.tag_mentions/keybindings.json
4. The built-in defaults

Example keybindings.json:
    {
        "nav_down": ["down", "c-n"],
        "nav_up": ["up", "c-p"],
        "accept": "enter"
    }
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from tag_mentions.config import read_first_json_object, user_config_path

logger = logging.getLogger(__name__)

# One key, or alternatives that all fire the same action
KeyBinding = Union[str, List[str]]

ENV_PREFIX = "TAG_MENTIONS_KEY_"
DEFAULT_PROJECT_PATH = ".tag_mentions/keybindings.json"

DEFAULT_KEYBINDINGS: Dict[str, KeyBinding] = {
    "nav_up": "up",
    "nav_down": "down",
    "accept": ["enter", "tab"],
    "cancel": "escape",
}

ACTION_DESCRIPTIONS = {
    "nav_up": "Highlight previous tag",
    "nav_down": "Highlight next tag",
    "accept": "Insert highlighted tag",
    "cancel": "Close the menu",
}

# prompt_toolkit names some keys after their control code
_KEY_ALIASES = {
    "c-m": "enter",
    "c-i": "tab",
    "c-[": "escape",
}

_DISPLAY_NAMES = {
    "escape": "Esc",
    "pageup": "PgUp",
    "pagedown": "PgDn",
}


def normalize_key(key: KeyBinding) -> KeyBinding:
    """Lowercase a binding; "enter tab" becomes ["enter", "tab"]."""
    if isinstance(key, (list, tuple)):
        cleaned = [str(k).strip().lower() for k in key]
        return [k for k in cleaned if k]

    parts = str(key).lower().split()
    if len(parts) > 1:
        return parts
    return parts[0] if parts else ""


def key_alternatives(key: KeyBinding) -> List[str]:
    if isinstance(key, list):
        return list(key)
    return [key]


def canonical_key(key: str) -> str:
    key = key.strip().lower()
    return _KEY_ALIASES.get(key, key)


def format_key_for_display(key: KeyBinding) -> str:
    """Human-readable key name for menu footers.

    "c-n" -> "Ctrl+N", "escape" -> "Esc", ["enter", "tab"] -> "Enter/Tab"
    """
    if isinstance(key, list):
        return "/".join(format_key_for_display(k) for k in key)

    name = str(key).lower()
    if name.startswith("c-"):
        return "Ctrl+" + name[2:].upper()
    if name in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[name]
    return name.upper() if len(name) == 1 else name.capitalize()


def _env_bindings() -> Dict[str, KeyBinding]:
    data = {}
    for env_key, value in os.environ.items():
        if env_key.startswith(ENV_PREFIX):
            data[env_key[len(ENV_PREFIX):].lower()] = normalize_key(value)
    return data


@dataclass
class MentionKeybindingConfig:
    """Key bindings for the four mention menu actions."""
    nav_up: KeyBinding = field(default_factory=lambda: DEFAULT_KEYBINDINGS["nav_up"])
    nav_down: KeyBinding = field(default_factory=lambda: DEFAULT_KEYBINDINGS["nav_down"])
    accept: KeyBinding = field(default_factory=lambda: list(DEFAULT_KEYBINDINGS["accept"]))
    cancel: KeyBinding = field(default_factory=lambda: DEFAULT_KEYBINDINGS["cancel"])

    # File the bindings came from, or "default"
    _source: str = field(default="default")

    @property
    def source(self) -> str:
        return self._source

    def get_keys(self, action: str) -> List[str]:
        """Keys bound to ``action``.

        Raises:
            ValueError: If ``action`` is not one of the menu actions.
        """
        if action not in DEFAULT_KEYBINDINGS:
            raise ValueError(f"Unknown mention action: {action}")
        return key_alternatives(getattr(self, action))

    def action_for_key(self, key: str) -> Optional[str]:
        """Menu action for a pressed key, or None when the key is not bound."""
        pressed = canonical_key(key)
        for action in DEFAULT_KEYBINDINGS:
            if any(canonical_key(k) == pressed for k in self.get_keys(action)):
                return action
        return None

    def help_lines(self) -> List[str]:
        lines = []
        for action, description in ACTION_DESCRIPTIONS.items():
            lines.append(f"{format_key_for_display(getattr(self, action))}  {description}")
        return lines

    @classmethod
    def from_dict(cls, data: Dict[str, KeyBinding]) -> "MentionKeybindingConfig":
        """Build bindings from a mapping of action name to key(s).

        Keys starting with "_" are comments. Unknown actions are logged and
        skipped.
        """
        bindings = {}
        for action, key in data.items():
            if action.startswith("_"):
                continue
            if action not in DEFAULT_KEYBINDINGS:
                logger.warning(f"Unknown keybinding action '{action}' - ignoring")
                continue
            bindings[action] = normalize_key(key)
        return cls(**bindings)

    @classmethod
    def from_env(cls) -> "MentionKeybindingConfig":
        """Bindings from TAG_MENTIONS_KEY_<ACTION> variables over the defaults."""
        return cls.from_dict(_env_bindings())

    @classmethod
    def from_file(
        cls,
        project_path: str = DEFAULT_PROJECT_PATH,
        user_path: Optional[str] = None,
    ) -> Optional["MentionKeybindingConfig"]:
        """Load the project keybindings file, else the user-level one.

        Returns:
            The loaded bindings with ``source`` set to the file used, or None
            when neither file gives a usable JSON object.
        """
        if user_path is None:
            user_path = user_config_path("keybindings.json")

        found = read_first_json_object([project_path, user_path], "keybindings file")
        if found is None:
            return None

        path, data = found
        config = cls.from_dict(data)
        config._source = path
        return config

    def to_dict(self) -> Dict[str, KeyBinding]:
        return {action: getattr(self, action) for action in DEFAULT_KEYBINDINGS}

    def set_binding(self, action: str, key: KeyBinding) -> bool:
        """Rebind ``action``; returns False for an unknown action."""
        if action not in DEFAULT_KEYBINDINGS:
            return False
        setattr(self, action, normalize_key(key))
        return True

    def save_to_file(self, path: str = DEFAULT_PROJECT_PATH) -> bool:
        """Write the bindings as JSON, creating parent directories.

        Returns:
            True on success; write errors are logged and give False.
        """
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save mention keybindings to {path}: {e}")
            return False

        logger.info(f"Saved mention keybindings to {path}")
        return True


def load_keybindings(
    project_path: str = DEFAULT_PROJECT_PATH,
    user_path: Optional[str] = None,
) -> MentionKeybindingConfig:
    """Resolve bindings: environment, then project file, user file, defaults.

    The environment overrides single actions; the rest come from the file
    (or defaults), and ``source`` keeps naming that file.
    """
    config = MentionKeybindingConfig.from_file(project_path, user_path) or MentionKeybindingConfig()

    overrides = {
        action: key for action, key in _env_bindings().items() if action in DEFAULT_KEYBINDINGS
    }
    if not overrides:
        return config

    source = config.source
    config = MentionKeybindingConfig.from_dict({**config.to_dict(), **overrides})
    config._source = source
    logger.info(f"Applied environment keybinding overrides: {sorted(overrides)}")
    return config
