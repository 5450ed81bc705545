"""Tests for librepl.command_queue."""

from __future__ import annotations

import pytest

from librepl.command import Command
from librepl.command_queue import CommandQueue


def _cmd(name: str) -> Command[str]:
    return Command(state=name, issue=lambda state: None)


def test_queue_is_fifo() -> None:
    """Commands come out in insertion order."""
    queue = CommandQueue()
    for name in "abc":
        queue.append(_cmd(name))

    popped = []
    while (cmd := queue.popleft()) is not None:
        popped.append(cmd.state)

    assert popped == ["a", "b", "c"]


def test_queue_keeps_duplicates() -> None:
    """The same command may be queued twice and runs twice."""
    queue = CommandQueue()
    cmd = _cmd("a")
    queue.append(cmd)
    queue.append(cmd)

    assert queue.pending == (cmd, cmd)


def test_install_requires_free_slot() -> None:
    """Only one command may be current."""
    queue = CommandQueue()
    queue.install(_cmd("a"))

    with pytest.raises(RuntimeError, match="already current"):
        queue.install(_cmd("b"))


def test_release_and_flushed() -> None:
    """Releasing the current command empties the slot."""
    queue = CommandQueue()
    cmd = _cmd("a")
    queue.install(cmd)

    assert queue.is_busy
    assert not queue.flushed
    assert queue.release() is cmd
    assert queue.release() is None
    assert queue.flushed


def test_clear_drops_pending_only() -> None:
    """Clearing leaves the current command alone."""
    queue = CommandQueue()
    current = queue.install(_cmd("a"))
    queue.append(_cmd("b"))
    queue.append(_cmd("c"))

    assert queue.clear() == 2
    assert len(queue) == 0
    assert queue.current is current
