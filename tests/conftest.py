"""
Shared pytest fixtures for x11parity tests.

Provides:
- fake_server: Function-scoped FakeXServer answering on a socketpair
- session: Established Session talking to fake_server
- memory_channel: Peerless in-memory byte channel
- trace_server_app: Flask app and Socket.IO server with a clean reference
"""

from __future__ import annotations

import pytest

from tests.fixtures.x11_peer import FakeXServer, MemoryChannel
from x11parity.configurations.simulation_config import SimulationConfig
from x11parity.server.session import Session

# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


def make_config(**timeouts) -> SimulationConfig:
    """Config with test-sized timeouts; the idle period is skipped."""
    timeouts.setdefault("reply_timeout_s", 1.0)
    timeouts.setdefault("idle_period_s", 0.0)
    return SimulationConfig().timeouts(**timeouts)


# ---------------------------------------------------------------------------
# X peer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def fake_server():
    server = FakeXServer().start()
    yield server
    server.close()


@pytest.fixture(scope="function")
def session(fake_server):
    """
    Session past the setup exchange, reply reader running.

    The fake server answers QueryFont, ListFonts, GrabPointer and the
    colormap queries with the defaults from default_reply_builders().
    """
    sess = Session(fake_server.channel, make_config())
    sess.establish()
    yield sess
    sess.close()


@pytest.fixture(scope="function")
def memory_channel():
    return MemoryChannel()


# ---------------------------------------------------------------------------
# Trace server fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def trace_server_app(monkeypatch):
    """
    The trace server module with no reference session and no output dir.

    Tests install their own reference with ``monkeypatch.setattr(app_module,
    "SESSION", ...)``.
    """
    from x11parity.server import app as app_module

    monkeypatch.setattr(app_module, "SESSION", None)
    monkeypatch.setattr(app_module, "CONFIG", SimulationConfig())
    app_module.app.config["TESTING"] = True
    return app_module
