"""Testing helpers for librepl."""

from __future__ import annotations

import collections
import typing as t

from librepl import exc
from librepl.constants import LINE_TERMINATOR
from librepl.transport import TransportEvent

Reply = t.Union[str, t.Sequence[str]]
Responder = t.Callable[[str], t.Optional[Reply]]


class ScriptedTransport:
    """In-memory transport used in doctests and unit tests.

    Every written line is looked up in ``script`` (then passed to
    ``responder``) and the reply, a string or a sequence of chunks, is
    queued as output events. Events are delivered by :meth:`poll`, which
    never blocks.

    Parameters
    ----------
    script : mapping, optional
        Request line (without terminator) to reply.
    responder : callable, optional
        ``responder(line)`` returning a reply or ``None`` for silence. Used
        for lines missing from ``script``.

    Examples
    --------
    >>> transport = ScriptedTransport(script={"1+1": ["2", "\\x04"]})
    >>> transport.start()
    >>> transport.write("1+1\\n")
    >>> [event.data for event in transport.poll()]
    ['2', '\\x04']
    >>> transport.requests
    ['1+1']
    """

    def __init__(
        self,
        *,
        script: t.Mapping[str, Reply] | None = None,
        responder: Responder | None = None,
    ) -> None:
        self.script: dict[str, Reply] = dict(script or {})
        self.responder = responder
        self.written: list[str] = []
        self.starts = 0
        self.closes = 0
        self._events: collections.deque[TransportEvent] = collections.deque()
        self._alive = False

    def start(self) -> None:
        """Mark the transport as running."""
        self._alive = True
        self.starts += 1

    def close(self) -> None:
        """Stop the transport and discard undelivered events."""
        self._alive = False
        self._events.clear()
        self.closes += 1

    def is_alive(self) -> bool:
        """Return True between :meth:`start` and :meth:`close`/:meth:`terminate`."""
        return self._alive

    def write(self, data: str) -> None:
        """Record ``data`` and queue the scripted replies of its lines."""
        if not self._alive:
            msg = "ScriptedTransport not running"
            raise exc.TransportClosed(msg)
        self.written.append(data)
        for line in data.split(LINE_TERMINATOR):
            if line:
                self._queue_reply(self._reply_for(line))

    def poll(self, timeout: float | None = None) -> list[TransportEvent]:
        """Return and clear every queued event."""
        events = list(self._events)
        self._events.clear()
        return events

    # Scripting ---------------------------------------------------------
    @property
    def requests(self) -> list[str]:
        """Return every line written so far, without terminators."""
        return [
            line
            for data in self.written
            for line in data.split(LINE_TERMINATOR)
            if line
        ]

    def emit(self, *chunks: str) -> None:
        """Queue raw output chunks as if the subprocess printed them."""
        for chunk in chunks:
            self._events.append(TransportEvent.output(chunk))

    def terminate(self, returncode: int | None = 1) -> None:
        """Simulate the subprocess exiting."""
        self._alive = False
        self._events.append(TransportEvent.terminated(returncode))

    def _reply_for(self, line: str) -> Reply | None:
        if line in self.script:
            return self.script[line]
        if self.responder is not None:
            return self.responder(line)
        return None

    def _queue_reply(self, reply: Reply | None) -> None:
        if reply is None:
            return
        if isinstance(reply, str):
            self.emit(reply)
        else:
            self.emit(*reply)


__all__ = ["Reply", "Responder", "ScriptedTransport"]
