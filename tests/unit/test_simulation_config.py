"""Unit tests for SimulationConfig builder methods."""

from __future__ import annotations

import logging

import pytest

from x11parity.configurations.simulation_config import SimulationConfig


class TestDefaults:
    def test_defaults(self) -> None:
        config = SimulationConfig()
        assert config.display_port == 6000
        assert (config.window_width, config.window_height) == (600, 400)
        assert config.byte_order == b"l"
        assert config.reply_timeout_s == 5.0
        assert config.max_reply_bytes == 4096
        assert config.output_dir is None


class TestBuilders:
    def test_chaining(self) -> None:
        config = (
            SimulationConfig()
            .display(host="10.0.0.2", display_number=3)
            .timeouts(reply_timeout_s=0.5, idle_period_s=0)
            .logging(level=logging.DEBUG)
        )
        assert config.display_host == "10.0.0.2"
        assert config.display_port == 6003
        assert config.reply_timeout_s == 0.5
        assert config.idle_period_s == 0
        assert config.log_level == logging.DEBUG

    def test_unset_arguments_keep_values(self) -> None:
        config = SimulationConfig().timeouts(reply_timeout_s=1.0).timeouts(idle_period_s=0.5)
        assert config.reply_timeout_s == 1.0

    def test_negative_display_rejected(self) -> None:
        with pytest.raises(ValueError, match="display_number"):
            SimulationConfig().display(display_number=-1)

    def test_big_endian_rejected(self) -> None:
        with pytest.raises(ValueError, match="little-endian"):
            SimulationConfig().protocol(byte_order=b"B")

    def test_output_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("X11PARITY_OUTPUT_DIR", "/tmp/traces")
        assert SimulationConfig().output().output_dir == "/tmp/traces"

    def test_explicit_output_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("X11PARITY_OUTPUT_DIR", "/tmp/traces")
        assert SimulationConfig().output("/data").output_dir == "/data"

    def test_window_size(self) -> None:
        config = SimulationConfig().window(width=320)
        assert (config.window_width, config.window_height) == (320, 400)
