"""FIFO of pending commands plus the current-command slot."""

from __future__ import annotations

import collections
import logging
import typing as t

if t.TYPE_CHECKING:
    from librepl.command import Command

logger = logging.getLogger(__name__)


class CommandQueue:
    """Ordered pending commands and at most one current command.

    The queue never rejects, reorders, or deduplicates. Appends are safe
    while a command's ``issue`` callback is running, which lets a command
    queue follow-up work.

    Examples
    --------
    >>> from librepl.command import Command
    >>> queue = CommandQueue()
    >>> a = Command(state="a", issue=lambda state: None)
    >>> b = Command(state="b", issue=lambda state: None)
    >>> queue.append(a)
    >>> queue.append(b)
    >>> queue.install(queue.popleft()).state
    'a'
    >>> len(queue), queue.is_busy
    (1, True)
    """

    def __init__(self) -> None:
        self._pending: collections.deque[Command[t.Any]] = collections.deque()
        self._current: Command[t.Any] | None = None

    @property
    def current(self) -> Command[t.Any] | None:
        """Return the active command, if any."""
        return self._current

    @property
    def is_busy(self) -> bool:
        """Return True while a command is current."""
        return self._current is not None

    @property
    def pending(self) -> tuple[Command[t.Any], ...]:
        """Return a snapshot of the pending commands in execution order."""
        return tuple(self._pending)

    @property
    def flushed(self) -> bool:
        """Return True when nothing is pending and nothing is current."""
        return not self._pending and self._current is None

    def append(self, cmd: Command[t.Any]) -> None:
        """Add a command to the tail."""
        self._pending.append(cmd)

    def popleft(self) -> Command[t.Any] | None:
        """Remove and return the head command, or ``None`` when empty."""
        if not self._pending:
            return None
        return self._pending.popleft()

    def install(self, cmd: Command[t.Any]) -> Command[t.Any]:
        """Make ``cmd`` the current command."""
        if self._current is not None:
            msg = "a command is already current"
            raise RuntimeError(msg)
        self._current = cmd
        return cmd

    def release(self) -> Command[t.Any] | None:
        """Clear and return the current command."""
        cmd, self._current = self._current, None
        return cmd

    def clear(self) -> int:
        """Drop every pending command and return how many were dropped."""
        dropped = len(self._pending)
        self._pending.clear()
        if dropped:
            logger.debug("dropped %d pending commands", dropped)
        return dropped

    def __len__(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(pending={len(self._pending)}, busy={self.is_busy})"
        )


__all__ = ["CommandQueue"]
