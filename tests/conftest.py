"""Fixtures for librepl tests."""

from __future__ import annotations

import os

import pytest

from librepl.process import Process
from librepl.testing import ScriptedTransport


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear librepl environment overrides so tests see the defaults."""
    for key in list(os.environ):
        if key.startswith("LIBREPL_"):
            monkeypatch.delenv(key)


@pytest.fixture
def transport() -> ScriptedTransport:
    """Return a started scripted transport."""
    transport = ScriptedTransport()
    transport.start()
    return transport


@pytest.fixture
def process(transport: ScriptedTransport) -> Process:
    """Return a process over the started scripted transport."""
    return Process(transport, name="test")


@pytest.fixture
def ended(process: Process) -> list[Process]:
    """Record every ended notification fired by ``process``."""
    calls: list[Process] = []
    process.add_ended_listener(calls.append)
    return calls
