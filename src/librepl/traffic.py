"""Line-buffered mirror of REPL traffic.

The mirror is observational: nothing it does feeds back into protocol
decisions. Each direction keeps its own partial line until a newline
arrives, then the completed line is emitted tagged with its direction.
"""

from __future__ import annotations

import enum
import logging
import typing as t

from librepl.constants import SENTINEL, TRAFFIC_RECEIVED_TAG, TRAFFIC_SENT_TAG

logger = logging.getLogger(__name__)


class Direction(enum.Enum):
    """Direction of mirrored traffic."""

    SENT = TRAFFIC_SENT_TAG
    RECEIVED = TRAFFIC_RECEIVED_TAG


class TrafficLog:
    """Mirror inbound and outbound traffic line by line.

    Parameters
    ----------
    sink : callable, optional
        Receives every tagged line, newline-terminated, e.g. the ``write``
        method of an open file.
    name : str, optional
        Appended to the ``librepl.traffic`` logger name, usually the process
        name.

    Examples
    --------
    >>> lines = []
    >>> log = TrafficLog(sink=lines.append)
    >>> log.received("hel")
    >>> log.received("lo\\nwor")
    >>> log.sent("1+1\\n")
    >>> lines
    ['<- hello\\n', '-> 1+1\\n']
    >>> log.flush()
    >>> lines[-1]
    '<- wor\\n'
    """

    def __init__(
        self,
        sink: t.Callable[[str], t.Any] | None = None,
        name: str | None = None,
    ) -> None:
        self.sink = sink
        self._logger = logger.getChild(name) if name else logger
        self._partial: dict[Direction, str] = dict.fromkeys(Direction, "")

    def sent(self, text: str) -> None:
        """Mirror text written to the subprocess."""
        self._feed(Direction.SENT, text)

    def received(self, text: str) -> None:
        """Mirror text read from the subprocess."""
        self._feed(Direction.RECEIVED, text)

    def flush(self) -> None:
        """Emit any partial lines still buffered."""
        for direction, partial in self._partial.items():
            if partial:
                self._partial[direction] = ""
                self._emit(direction, partial)

    def _feed(self, direction: Direction, text: str) -> None:
        data = self._partial[direction] + text
        *lines, rest = data.split("\n")
        self._partial[direction] = rest
        for line in lines:
            self._emit(direction, line)

    def _emit(self, direction: Direction, line: str) -> None:
        tagged = direction.value + line.replace(SENTINEL, "^D")
        self._logger.debug("%s", tagged)
        if self.sink is not None:
            self.sink(tagged + "\n")


__all__ = ["Direction", "TrafficLog"]
