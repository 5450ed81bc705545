"""Response accumulation for the active command."""

from __future__ import annotations

import dataclasses

from librepl.constants import SENTINEL


@dataclasses.dataclass
class ResponseBuffer:
    """Output accumulated for the current command plus a sentinel scan cursor.

    ``content`` only grows between resets. ``cursor`` marks how far the
    sentinel scan has already looked; text before it is known to contain no
    sentinel.

    Examples
    --------
    >>> buf = ResponseBuffer()
    >>> buf.append("foo")
    >>> buf.find_sentinel() is None
    True
    >>> buf.cursor
    3
    >>> buf.append("bar\\x04")
    >>> buf.find_sentinel()
    6
    >>> buf.content[:6]
    'foobar'
    """

    content: str = ""
    cursor: int = 0

    def append(self, chunk: str) -> None:
        """Append a chunk of output."""
        self.content += chunk

    def find_sentinel(self) -> int | None:
        """Return the index of the first sentinel at or after the cursor.

        When none is found the cursor advances to the end of the content, so
        later scans only look at newly appended text.
        """
        index = self.content.find(SENTINEL, self.cursor)
        if index == -1:
            self.cursor = len(self.content)
            return None
        self.cursor = index
        return index

    def reset(self) -> None:
        """Empty the buffer and rewind the cursor."""
        self.content = ""
        self.cursor = 0

    @property
    def is_empty(self) -> bool:
        """Return True when nothing is buffered and the cursor is at 0."""
        return not self.content and self.cursor == 0

    def __len__(self) -> int:
        return len(self.content)


__all__ = ["ResponseBuffer"]
