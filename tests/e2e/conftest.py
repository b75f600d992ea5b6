"""
E2E test configuration.

These tests drive a real rendering client in a browser against a running
trace server, so they need both endpoints:

    X11PARITY_CLIENT_URL=http://localhost:3000 \
    X11PARITY_TRACE_URL=http://localhost:8000 \
    pytest tests/e2e/

Without them every test in this directory is skipped.
"""

from __future__ import annotations

import os

import pytest

CLIENT_URL_ENV = "X11PARITY_CLIENT_URL"
TRACE_URL_ENV = "X11PARITY_TRACE_URL"


def pytest_collection_modifyitems(config, items):
    if os.environ.get(CLIENT_URL_ENV) and os.environ.get(TRACE_URL_ENV):
        return
    skip = pytest.mark.skip(reason=f"{CLIENT_URL_ENV} and {TRACE_URL_ENV} must be set")
    for item in items:
        if "e2e/" in item.nodeid:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def client_url():
    return os.environ[CLIENT_URL_ENV]


@pytest.fixture(scope="session")
def trace_url():
    return os.environ[TRACE_URL_ENV].rstrip("/")
