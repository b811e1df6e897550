"""
Tests for settings resolution and API key storage.
"""

import json
import logging

import pytest

from scisent.config import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_RENDER_WIDTH,
    DEFAULT_TARGET_LANG,
    load_settings,
)
from scisent.keys import KeyManager


class TestSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.max_workers == DEFAULT_MAX_WORKERS
        assert settings.target_lang == DEFAULT_TARGET_LANG
        assert settings.render_width == DEFAULT_RENDER_WIDTH
        assert settings.deepl_url is None
        assert settings.to_dict()["deepl_url"] == "(auto)"

    def test_overrides(self):
        settings = load_settings({
            "SCISENT_MAX_WORKERS": "8",
            "SCISENT_LOG_LEVEL": "debug",
            "SCISENT_TARGET_LANG": "de",
            "SCISENT_DEEPL_URL": "http://localhost:8080/v2/translate",
            "SCISENT_RENDER_WIDTH": "1200",
        })
        assert settings.max_workers == 8
        assert settings.log_level == "DEBUG"
        assert settings.target_lang == "DE"
        assert settings.deepl_url == "http://localhost:8080/v2/translate"
        assert settings.render_width == 1200

    @pytest.mark.parametrize("raw", ["many", "0", "-3"])
    def test_invalid_int_falls_back(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger="scisent.config"):
            settings = load_settings({"SCISENT_MAX_WORKERS": raw})
        assert settings.max_workers == DEFAULT_MAX_WORKERS
        assert "SCISENT_MAX_WORKERS" in caplog.text

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SCISENT_RENDER_WIDTH", "640")
        assert load_settings().render_width == 640


class TestKeyManager:
    @pytest.fixture
    def km(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEEPL_API_KEY", raising=False)
        return KeyManager(config_dir=tmp_path, use_keyring=False)

    def test_set_get_delete(self, km):
        assert km.get_key("deepl") is None
        assert km.set_key("deepl", "abcdefgh-1234:fx") == "config"
        assert km.get_key("DeepL") == "abcdefgh-1234:fx"
        assert json.loads(km.config_file.read_text()) == {"deepl": "abcdefgh-1234:fx"}

        assert km.delete_key("deepl")
        assert km.get_key("deepl") is None
        assert not km.delete_key("deepl")

    def test_env_takes_priority(self, km, monkeypatch):
        km.set_key("deepl", "from-config-file")
        monkeypatch.setenv("DEEPL_API_KEY", "from-environment")
        info = km.get_key_info("deepl")
        assert info.source == "env"
        assert km.get_key("deepl") == "from-environment"

    def test_masking(self, km):
        km.set_key("deepl", "abcdefgh-1234:fx")
        info = km.get_key_info("deepl")
        assert info.is_set
        assert info.masked_value == "abcd...4:fx"
        assert km._mask_key("short") == "*****"

    def test_list_keys(self, km):
        infos = km.list_keys()
        assert [i.service for i in infos] == ["deepl"]
        assert infos[0].source == "none"

    def test_unreadable_key_file(self, km):
        km.config_file.write_text("{broken")
        assert km.get_key("deepl") is None


class TestDirectories:
    def test_ensure_dirs(self, tmp_path, monkeypatch):
        import scisent.config as config

        monkeypatch.setattr(config, "CONFIG_DIR", tmp_path / "cfg")
        monkeypatch.setattr(config, "CACHE_DIR", tmp_path / "cfg" / "cache")
        monkeypatch.setattr(config, "RENDER_DIR", tmp_path / "cfg" / "cache" / "pages")
        config.ensure_dirs()
        assert (tmp_path / "cfg" / "cache" / "pages").is_dir()
