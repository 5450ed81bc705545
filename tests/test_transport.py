"""Tests for librepl.transport against a real subprocess."""

from __future__ import annotations

import sys
import textwrap
import time
import typing as t

import pytest

from librepl import exc
from librepl.command import Command
from librepl.process import Process
from librepl.sync import queue_sync_request
from librepl.testing import ScriptedTransport
from librepl.transport import EventKind, SubprocessTransport, Transport, TransportEvent

if t.TYPE_CHECKING:
    import pathlib

ECHO_REPL = textwrap.dedent(
    """
    import sys

    for line in sys.stdin:
        line = line.rstrip("\\n")
        if line == "quit":
            break
        if line == "warn":
            sys.stderr.write("warning!\\n")
            sys.stderr.flush()
        sys.stdout.write("echo: " + line + "\\n\\x04")
        sys.stdout.flush()
    """,
)


@pytest.fixture
def echo_repl(tmp_path: pathlib.Path) -> SubprocessTransport:
    """Return a transport running a tiny sentinel-prompting echo REPL."""
    script = tmp_path / "echo_repl.py"
    script.write_text(ECHO_REPL, encoding="utf-8")
    return SubprocessTransport(
        [sys.executable, "-u", str(script)],
        env={"PYTHONIOENCODING": "utf-8"},
    )


def wait_until(
    predicate: t.Callable[[], bool],
    process: Process,
    *,
    timeout: float = 5.0,
) -> bool:
    """Pump ``process`` until ``predicate`` holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() >= deadline:
            return False
        process.pump(0.05)
    return True


def test_scripted_and_subprocess_satisfy_protocol(
    echo_repl: SubprocessTransport,
) -> None:
    """Both transports implement the Transport protocol."""
    assert isinstance(echo_repl, Transport)
    assert isinstance(ScriptedTransport(), Transport)


def test_transport_events() -> None:
    """Event constructors fill in the kind."""
    assert TransportEvent.output("x") == TransportEvent(EventKind.OUTPUT, "x")
    assert TransportEvent.terminated(3).returncode == 3


def test_sync_request_over_pipes(echo_repl: SubprocessTransport) -> None:
    """Requests round-trip through a real child process."""
    with Process(echo_repl, name="echo") as process:
        assert process.is_alive()
        assert (
            queue_sync_request(process, "hello", poll_interval=0.05, max_polls=200)
            == "echo: hello\n"
        )
        assert (
            queue_sync_request(process, "héllo λ", poll_interval=0.05, max_polls=200)
            == "echo: héllo λ\n"
        )

    assert not echo_repl.is_alive()


def test_stderr_is_merged(echo_repl: SubprocessTransport) -> None:
    """Diagnostics on stderr are part of the command's response."""
    with Process(echo_repl, name="echo") as process:
        response = queue_sync_request(
            process,
            "warn",
            poll_interval=0.05,
            max_polls=200,
        )

    assert "warning!\n" in response
    assert response.endswith("echo: warn\n")


def test_subprocess_exit_notifies(echo_repl: SubprocessTransport) -> None:
    """The child exiting fires ended and drops the in-flight command."""
    process = Process(echo_repl, name="echo")
    ended: list[Process] = []
    completed: list[str] = []
    process.add_ended_listener(ended.append)
    process.start()

    process.enqueue(
        Command(
            state=process,
            issue=lambda state: state.send("quit"),
            complete=lambda state, response: completed.append(response),
        ),
    )

    assert wait_until(lambda: bool(ended), process)
    assert ended == [process]
    assert completed == []
    assert not process.is_alive()
    assert process.queue_flushed()

    with pytest.raises(exc.TransportClosed):
        echo_repl.write("hello\n")
    process.close()


def test_restart_spawns_new_child(echo_repl: SubprocessTransport) -> None:
    """Restart replaces the child without an ended notification."""
    ended: list[Process] = []
    with Process(echo_repl, name="echo") as process:
        process.add_ended_listener(ended.append)
        first = echo_repl.process
        assert first is not None

        process.restart()

        assert echo_repl.process is not None
        assert echo_repl.process.pid != first.pid
        assert queue_sync_request(process, "again", poll_interval=0.05) == "echo: again\n"

    assert ended == []


def test_missing_executable() -> None:
    """Starting a transport for a missing binary raises."""
    transport = SubprocessTransport(["librepl-no-such-repl-binary"])

    with pytest.raises(exc.ReplCommandNotFound, match="librepl-no-such-repl-binary"):
        transport.start()


def test_write_before_start() -> None:
    """Writing to an unstarted transport raises TransportClosed."""
    transport = SubprocessTransport([sys.executable])

    with pytest.raises(exc.TransportClosed):
        transport.write("1+1\n")

    assert transport.poll(0) == []


def test_empty_argv() -> None:
    """A transport needs a command line."""
    with pytest.raises(ValueError, match="argv"):
        SubprocessTransport([])
