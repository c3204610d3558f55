"""
Tests for environment-driven configuration.

Run with: pytest test_config.py -v
"""

import pytest

import config as config_module
from config import EngineConfig, get_env_bool, get_env_float, get_env_int


class TestEnvHelpers:

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_truthy(self, monkeypatch, raw):
        monkeypatch.setenv("KNOCK_FLAG", raw)
        assert get_env_bool("KNOCK_FLAG") is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
    def test_falsy(self, monkeypatch, raw):
        monkeypatch.setenv("KNOCK_FLAG", raw)
        assert get_env_bool("KNOCK_FLAG", True) is False

    def test_bool_garbage_uses_default(self, monkeypatch):
        monkeypatch.setenv("KNOCK_FLAG", "maybe")
        assert get_env_bool("KNOCK_FLAG", True) is True

    def test_int_garbage_uses_default(self, monkeypatch):
        monkeypatch.setenv("KNOCK_INT", "four")
        assert get_env_int("KNOCK_INT", 4) == 4

    def test_float(self, monkeypatch):
        monkeypatch.setenv("KNOCK_FLOAT", "0.25")
        assert get_env_float("KNOCK_FLOAT", 1.0) == 0.25

    def test_missing_uses_default(self, monkeypatch):
        monkeypatch.delenv("KNOCK_FLOAT", raising=False)
        assert get_env_float("KNOCK_FLOAT", 1.5) == 1.5


class TestEngineConfig:

    def test_defaults(self, monkeypatch):
        for key in ("AI_THINK_DELAY", "AI_SWAP_THINK_DELAY", "HAND_SIZE", "INITIAL_PEEKS"):
            monkeypatch.delenv(key, raising=False)

        cfg = EngineConfig.from_env()

        assert cfg.ai_timing.think_delay == 1.0
        assert cfg.ai_timing.swap_think_delay == 1.0
        assert cfg.table.hand_size == 4
        assert cfg.table.initial_peeks == 2

    def test_reload_reads_environment(self, monkeypatch):
        monkeypatch.setenv("AI_THINK_DELAY", "0.5")
        monkeypatch.setenv("HAND_SIZE", "6")
        try:
            cfg = config_module.reload_config()
            assert cfg.ai_timing.think_delay == 0.5
            assert cfg.table.hand_size == 6
            assert config_module.config is cfg
        finally:
            monkeypatch.undo()
            config_module.reload_config()
