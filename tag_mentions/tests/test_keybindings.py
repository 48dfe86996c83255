"""Tests for mention menu keybinding configuration."""

import json
import logging

import pytest

from tag_mentions.keybindings import (
    DEFAULT_KEYBINDINGS,
    MentionKeybindingConfig,
    format_key_for_display,
    load_keybindings,
    normalize_key,
)


class TestNormalizeKey:
    """Tests for keybinding normalization."""

    def test_single_key_lowercased(self):
        assert normalize_key(" Enter ") == "enter"

    def test_space_separated_alternatives(self):
        assert normalize_key("Enter Tab") == ["enter", "tab"]

    def test_list_cleaned(self):
        assert normalize_key(["Enter", " "]) == ["enter"]


class TestFormatKeyForDisplay:
    """Tests for human-readable key names."""

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("c-n", "Ctrl+N"),
            ("escape", "Esc"),
            ("enter", "Enter"),
            ("down", "Down"),
            ("pageup", "PgUp"),
            ("x", "X"),
            ("f5", "F5"),
            (["enter", "tab"], "Enter/Tab"),
        ],
    )
    def test_display(self, key, expected):
        assert format_key_for_display(key) == expected


class TestMentionKeybindingConfig:
    """Tests for MentionKeybindingConfig."""

    def test_defaults(self):
        """Test defaults match the menu's keyboard protocol."""
        config = MentionKeybindingConfig()
        assert config.get_keys("nav_up") == ["up"]
        assert config.get_keys("nav_down") == ["down"]
        assert config.get_keys("accept") == ["enter", "tab"]
        assert config.get_keys("cancel") == ["escape"]
        assert config.source == "default"

    def test_default_lists_not_shared(self):
        first = MentionKeybindingConfig()
        first.accept.append("space")
        assert MentionKeybindingConfig().accept == ["enter", "tab"]
        assert DEFAULT_KEYBINDINGS["accept"] == ["enter", "tab"]

    def test_unknown_action_raises(self):
        with pytest.raises(ValueError):
            MentionKeybindingConfig().get_keys("submit")

    def test_action_for_key(self):
        config = MentionKeybindingConfig()
        assert config.action_for_key("down") == "nav_down"
        assert config.action_for_key("tab") == "accept"
        assert config.action_for_key("x") is None

    def test_action_for_control_code(self):
        """prompt_toolkit control-code names resolve to their aliases."""
        config = MentionKeybindingConfig()
        assert config.action_for_key("c-m") == "accept"
        assert config.action_for_key("C-I") == "accept"
        assert config.action_for_key("c-[") == "cancel"

    def test_help_lines(self):
        assert MentionKeybindingConfig().help_lines() == [
            "Up  Highlight previous tag",
            "Down  Highlight next tag",
            "Enter/Tab  Insert highlighted tag",
            "Esc  Close the menu",
        ]

    def test_set_binding(self):
        config = MentionKeybindingConfig()
        assert config.set_binding("nav_down", "Down C-N") is True
        assert config.get_keys("nav_down") == ["down", "c-n"]
        assert config.set_binding("submit", "enter") is False

    def test_from_dict_ignores_unknown(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = MentionKeybindingConfig.from_dict({
                "accept": "enter",
                "submit": "c-s",
                "_comment": "menu keys",
            })
        assert config.accept == "enter"
        assert "Unknown keybinding action 'submit'" in caplog.text

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TAG_MENTIONS_KEY_NAV_DOWN", "down c-n")
        config = MentionKeybindingConfig.from_env()
        assert config.nav_down == ["down", "c-n"]
        assert config.nav_up == "up"

    def test_from_env_without_variables(self):
        assert MentionKeybindingConfig.from_env() == MentionKeybindingConfig()


class TestKeybindingFiles:
    """Tests for loading and saving keybinding files."""

    def test_from_file_records_source(self, tmp_path):
        path = tmp_path / "keybindings.json"
        path.write_text(json.dumps({"cancel": "c-g"}))

        config = MentionKeybindingConfig.from_file(str(path), str(tmp_path / "user.json"))

        assert config.cancel == "c-g"
        assert config.source == str(path)

    def test_no_files(self, tmp_path):
        assert MentionKeybindingConfig.from_file(
            str(tmp_path / "a.json"), str(tmp_path / "b.json")
        ) is None

    def test_invalid_json(self, tmp_path, caplog):
        path = tmp_path / "keybindings.json"
        path.write_text("{oops")

        with caplog.at_level(logging.WARNING):
            config = MentionKeybindingConfig.from_file(str(path), str(tmp_path / "user.json"))

        assert config is None
        assert "Invalid JSON in keybindings file" in caplog.text

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "keybindings.json"
        config = MentionKeybindingConfig(nav_down=["down", "c-n"])

        assert config.save_to_file(str(path)) is True

        loaded = MentionKeybindingConfig.from_file(str(path), str(tmp_path / "user.json"))
        assert loaded.to_dict() == config.to_dict()

    def test_load_keybindings_env_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "keybindings.json"
        path.write_text(json.dumps({"cancel": "c-g", "accept": "enter"}))
        monkeypatch.setenv("TAG_MENTIONS_KEY_ACCEPT", "tab")

        config = load_keybindings(str(path), str(tmp_path / "user.json"))

        assert config.cancel == "c-g"
        assert config.accept == "tab"
        assert config.source == str(path)

    def test_load_keybindings_defaults(self, tmp_path):
        config = load_keybindings(str(tmp_path / "a.json"), str(tmp_path / "b.json"))
        assert config.to_dict() == DEFAULT_KEYBINDINGS
