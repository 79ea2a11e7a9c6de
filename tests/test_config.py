"""Tests for config loading, validation, env var overrides, and logging setup."""

import logging
import sys
from pathlib import Path

import pytest

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from hunkstage.config.defaults import DEFAULT_KEYMAP_YAML, DEFAULT_TOML
from hunkstage.config.loader import ConfigError, load_config
from hunkstage.log import LOGGER_NAME, configure_logging


class TestConfigLoading:
    def test_default_config(self, tmp_path: Path):
        cfg = load_config(tmp_path)
        assert cfg.diff.include_untracked is True
        assert cfg.diff.context_lines == 3
        assert cfg.ui.confirm_discard is True
        assert cfg.keys.keymap_file == ""
        assert cfg.logging.file == ""

    def test_custom_toml(self, tmp_path: Path):
        toml_path = tmp_path / ".hunkstage.toml"
        toml_path.write_text(
            'version = "1.0"\n'
            '[diff]\n'
            'context_lines = 1\n'
            '[ui]\n'
            'collapse_files = true\n'
            'show_legend = false\n'
        )
        cfg = load_config(tmp_path)
        assert cfg.diff.context_lines == 1
        assert cfg.ui.collapse_files is True
        assert cfg.ui.show_legend is False
        assert cfg.ui.confirm_discard is True  # untouched default

    def test_unknown_keys_ignored(self, tmp_path: Path):
        (tmp_path / ".hunkstage.toml").write_text('[ui]\ntheme = "dark"\n[extra]\na = 1\n')
        cfg = load_config(tmp_path)
        assert cfg.ui.show_legend is True

    def test_config_override_path(self, tmp_path: Path):
        custom = tmp_path / "custom.toml"
        custom.write_text('[logging]\nlevel = "debug"\n')
        cfg = load_config(tmp_path, config_override=str(custom))
        assert cfg.logging.level == "debug"

    def test_missing_override_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path, config_override="/nonexistent/config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        bad_toml = tmp_path / ".hunkstage.toml"
        bad_toml.write_text("this is not valid [toml")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_negative_context_raises(self, tmp_path: Path):
        (tmp_path / ".hunkstage.toml").write_text("[diff]\ncontext_lines = -1\n")
        with pytest.raises(ConfigError, match="context_lines"):
            load_config(tmp_path)

    def test_bad_level_raises(self, tmp_path: Path):
        (tmp_path / ".hunkstage.toml").write_text('[logging]\nlevel = "loud"\n')
        with pytest.raises(ConfigError, match="logging.level"):
            load_config(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path):
        (tmp_path / ".hunkstage.toml").write_text('ui = "compact"\n')
        with pytest.raises(ConfigError, match=r"\[ui\] must be a table"):
            load_config(tmp_path)


class TestEnvVarOverrides:
    def test_log_file_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HUNKSTAGE_LOG_FILE", "/tmp/hs.log")
        cfg = load_config(tmp_path)
        assert cfg.logging.file == "/tmp/hs.log"

    def test_log_level_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HUNKSTAGE_LOG_LEVEL", "WARNING")
        cfg = load_config(tmp_path)
        assert cfg.logging.level == "warning"

    def test_no_untracked_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HUNKSTAGE_NO_UNTRACKED", "1")
        cfg = load_config(tmp_path)
        assert cfg.diff.include_untracked is False

    def test_invalid_env_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HUNKSTAGE_LOG_LEVEL", "chatty")
        cfg = load_config(tmp_path)
        assert cfg.logging.level == "info"  # default unchanged


class TestTemplates:
    def test_default_toml_loads(self, tmp_path: Path):
        (tmp_path / ".hunkstage.toml").write_text(DEFAULT_TOML)
        cfg = load_config(tmp_path)
        assert cfg.diff.context_lines == 3
        assert tomllib.loads(DEFAULT_TOML)["version"] == "1.0"

    def test_default_keymap_is_valid_yaml(self, tmp_path: Path):
        from hunkstage.keys.builtin import ALL_BUILTIN_BINDINGS
        from hunkstage.keys.registry import KeymapRegistry

        keymap = tmp_path / "keys.yaml"
        keymap.write_text(DEFAULT_KEYMAP_YAML)
        reg = KeymapRegistry()
        reg.register_many(ALL_BUILTIN_BINDINGS)
        assert reg.load_yaml(keymap) == 3


class TestLogging:
    def test_null_handler_without_file(self):
        logger = configure_logging("")
        assert [type(h) for h in logger.handlers] == [logging.NullHandler]

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "hunkstage.log"
        logger = configure_logging(str(log_file), "debug")
        try:
            logging.getLogger(f"{LOGGER_NAME}.test").debug("hello from test")
            for h in logger.handlers:
                h.flush()
            assert "hello from test" in log_file.read_text()
            assert logger.level == logging.DEBUG
        finally:
            configure_logging("")
