"""Tests for the librepl pytest plugin fixtures."""

from __future__ import annotations

import pytest

from librepl.process import Process
from librepl.sync import queue_sync_request
from librepl.testing import ScriptedTransport


def test_repl_process_fixture(
    request: pytest.FixtureRequest,
    repl_process: Process,
    scripted_transport: ScriptedTransport,
) -> None:
    """The fixture process is started over the scripted transport."""
    scripted_transport.script["1+1"] = "2\x04"

    assert repl_process.is_alive()
    assert repl_process.transport is scripted_transport
    assert repl_process.name == request.node.name
    assert queue_sync_request(repl_process, "1+1") == "2"
