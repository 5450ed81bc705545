"""librepl pytest plugin."""

from __future__ import annotations

import typing as t

import pytest

from librepl.process import Process
from librepl.testing import ScriptedTransport


@pytest.fixture
def scripted_transport() -> ScriptedTransport:
    """Return an unstarted :class:`~librepl.testing.ScriptedTransport`.

    Add replies through its ``script`` dict or ``responder`` attribute.
    """
    return ScriptedTransport()


@pytest.fixture
def repl_process(
    request: pytest.FixtureRequest,
    scripted_transport: ScriptedTransport,
) -> t.Iterator[Process]:
    """Return a started :class:`~librepl.process.Process` over ``scripted_transport``.

    The process is named after the requesting test and closed afterwards.
    """
    process = Process(scripted_transport, name=request.node.name)
    process.start()
    yield process
    process.close()
