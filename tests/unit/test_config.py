"""
Tests for Configuration System.

This test suite covers:
1. Default locations and environment overrides
2. Loading settings and the plugin list from TOML
3. Default config generation (with comments)
4. Error cases
"""

import tempfile
import tomllib
from pathlib import Path

import pytest

from plugpin.config import (
    ConfigError,
    default_config_file,
    default_lockfile,
    default_package_root,
    load_settings,
    write_default_config,
)
from plugpin.config.toml_handler import TOMLError, generate_default_config, read_toml


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("PLUGPIN_CONFIG", "PLUGPIN_PACKAGE_ROOT", "PLUGPIN_LOCKFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


class TestDefaults:
    """Test default locations."""

    def test_xdg_locations(self, tmp_path):
        assert default_config_file() == tmp_path / "config" / "plugpin" / "plugpin.toml"
        assert default_lockfile() == tmp_path / "config" / "plugpin" / "plugpin-lock.json"
        assert default_package_root() == (
            tmp_path / "data" / "plugpin" / "site" / "pack" / "plugpin" / "opt"
        )

    def test_config_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PLUGPIN_CONFIG", str(tmp_path / "custom.toml"))

        assert default_config_file() == tmp_path / "custom.toml"

    def test_missing_file_yields_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "missing.toml")

        assert settings.plugins == []
        assert settings.log_level == "INFO"
        assert settings.package_root == default_package_root()
        assert settings.config_file is None


class TestLoadSettings:
    """Test loading a config file."""

    def write(self, tmpdir: str, text: str) -> Path:
        path = Path(tmpdir) / "plugpin.toml"
        path.write_text(text)
        return path

    def test_plugins_keep_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write(
                tmpdir,
                'plugins = [\n'
                '  "org/plugin-b",\n'
                '  { url = "org/plugin-a", branch = "stable", build = "make" },\n'
                ']\n',
            )

            settings = load_settings(path)

            assert settings.plugins == [
                "org/plugin-b",
                {"url": "org/plugin-a", "branch": "stable", "build": "make"},
            ]
            assert settings.config_file == path

    def test_settings_table(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write(
                tmpdir,
                '[settings]\n'
                f'package_root = "{tmpdir}/pack"\n'
                'lockfile = "~/lock.json"\n'
                'log_level = "debug"\n',
            )

            settings = load_settings(path)

            assert settings.package_root == Path(tmpdir) / "pack"
            assert settings.lockfile == Path("~/lock.json").expanduser()
            assert settings.log_level == "DEBUG"

    def test_environment_wins(self, monkeypatch):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write(tmpdir, '[settings]\npackage_root = "/from/file"\n')
            monkeypatch.setenv("PLUGPIN_PACKAGE_ROOT", f"{tmpdir}/env-pack")
            monkeypatch.setenv("PLUGPIN_LOCKFILE", f"{tmpdir}/env-lock.json")

            settings = load_settings(path)

            assert settings.package_root == Path(tmpdir) / "env-pack"
            assert settings.lockfile == Path(tmpdir) / "env-lock.json"

    @pytest.mark.parametrize(
        "text, message",
        [
            ("settings = 3\n", "must be a table"),
            ('[settings]\ncolor = "red"\n', "Unknown settings: color"),
            ('[settings]\nlog_level = "LOUD"\n', "log_level"),
            ("[settings]\npackage_root = 3\n", "package_root must be a string"),
            ('plugins = "org/a"\n', "plugins must be an array"),
            ("plugins = [\n", "Failed to parse"),
        ],
    )
    def test_invalid(self, text, message):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write(tmpdir, text)

            with pytest.raises(ConfigError, match=message):
                load_settings(path)


class TestDefaultConfig:
    """Test default config generation."""

    def test_generated_document_parses(self):
        doc = generate_default_config(Path("/pack"), Path("/lock.json"))
        text = doc.as_string()

        data = tomllib.loads(text)

        assert data["plugins"] == []
        assert data["settings"] == {
            "package_root": "/pack",
            "lockfile": "/lock.json",
            "log_level": "INFO",
        }
        assert "# Directory every plugin is cloned into" in text

    def test_write_default_config(self, tmp_path):
        path = tmp_path / "out" / "plugpin.toml"

        assert write_default_config(path) == path

        settings = load_settings(path)
        assert settings.plugins == []
        assert settings.package_root == default_package_root()

    def test_refuses_to_overwrite(self, tmp_path):
        path = tmp_path / "plugpin.toml"
        path.write_text("plugins = []\n")

        with pytest.raises(ConfigError, match="already exists"):
            write_default_config(path)
        assert path.read_text() == "plugins = []\n"


class TestReadToml:
    def test_missing_file(self, tmp_path):
        with pytest.raises(TOMLError, match="not found"):
            read_toml(tmp_path / "nope.toml")
