"""Provide exceptions used by librepl.

librepl.exc
~~~~~~~~~~~

Transport failures are reported to enqueuing callers only through the
process "ended" notification; the exceptions here surface at the seams that
are allowed to raise: transport writes, the synchronous bridge, and the
completion sub-protocol parser.

Notes
-----
Exceptions in this module inherit from :exc:`LibReplException`.
"""

from __future__ import annotations

import typing as t


class LibReplException(Exception):
    """Base exception for all librepl errors."""


class TransportError(LibReplException):
    """Base exception for subprocess transport failures."""


class TransportClosed(TransportError):
    """Raised when writing to a subprocess that is not running."""


class ReplCommandNotFound(TransportError):
    """Raised when the REPL executable cannot be found on the system."""

    def __init__(self, executable: str | None = None, *args: object) -> None:
        if executable is not None:
            super().__init__(f"REPL executable not found: {executable}")
        else:
            super().__init__("REPL executable not found")


class ProtocolError(LibReplException):
    """Base exception for responses that violate an expected format."""


class CapabilityMissing(ProtocolError):
    """Raised when the REPL does not recognize a command it was sent."""

    def __init__(self, command: str, *args: object) -> None:
        self.command = command
        super().__init__(f"REPL lacks support for {command!r}")


class MalformedCompletionResponse(ProtocolError):
    """Raised when a completion response line cannot be parsed."""

    def __init__(self, line: str, *args: object) -> None:
        self.line = line
        super().__init__(f"Invalid completion response line: {line!r}")


class CompletionCountMismatch(ProtocolError):
    """Raised when the declared completion count disagrees with the lines sent."""

    def __init__(self, declared: int, received: int, *args: object) -> None:
        self.declared = declared
        self.received = received
        super().__init__(
            f"Completion response declared {declared} candidates, received {received}",
        )


class LiteralDecodeError(LibReplException, ValueError):
    """Raised when a literal-encoded token is malformed."""

    def __init__(self, reason: str, token: t.Any | None = None, *args: object) -> None:
        msg = f"Bad literal: {reason}"
        if token is not None:
            msg += f" (token: {token!r})"
        super().__init__(msg)


class SyncRequestTimeout(LibReplException):
    """Raised when a synchronous request exhausts its poll budget."""

    def __init__(self, request: str, polls: int, *args: object) -> None:
        self.request = request
        self.polls = polls
        super().__init__(f"No response to {request!r} after {polls} polls")


class ProcessEnded(LibReplException):
    """Raised by the synchronous bridge when the subprocess ends mid-request."""

    def __init__(self, name: str, request: str, *args: object) -> None:
        self.name = name
        self.request = request
        super().__init__(f"Process {name!r} ended before answering {request!r}")
