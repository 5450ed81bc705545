"""Identifier completion sub-protocol.

librepl.completion
~~~~~~~~~~~~~~~~~~

The REPL is asked ``:complete repl "<input>"`` and answers with a header
line ``<shown> <total> "<unused prefix>"`` followed by exactly ``<shown>``
literal-encoded candidates, one per line.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import re
import typing as t

from librepl import exc
from librepl.constants import (
    COMPLETE_COMMAND,
    POLL_INTERVAL_SECONDS,
    SYNC_MAX_POLLS,
    UNKNOWN_COMMAND_MARKER,
)
from librepl.literal import literal_decode, literal_encode
from librepl.sync import queue_sync_request

if t.TYPE_CHECKING:
    from librepl.process import Process

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r'\A(?P<shown>[0-9]+) (?P<total>[0-9]+) (?P<prefix>".*")\Z')
_LINE_SPLIT_RE = re.compile(r"\r?\n")


class ResponseStatus(enum.Enum):
    """Error classification of a REPL response, from its first line."""

    NO_ERROR = enum.auto()
    UNKNOWN_COMMAND = enum.auto()
    OPTION_MISSING = enum.auto()
    INTERACTIVE_ERROR = enum.auto()


def _response_lines(response: str) -> list[str]:
    return [line for line in _LINE_SPLIT_RE.split(response) if line]


def repl_response_error_status(response: str) -> ResponseStatus:
    """Classify ``response`` by its first non-empty line.

    Examples
    --------
    >>> repl_response_error_status("unknown command ':complete'")
    <ResponseStatus.UNKNOWN_COMMAND: 2>
    >>> repl_response_error_status("<interactive>:1:1: error: parse error")
    <ResponseStatus.INTERACTIVE_ERROR: 4>
    >>> repl_response_error_status("")
    <ResponseStatus.NO_ERROR: 1>
    """
    lines = _response_lines(response)
    if not lines:
        return ResponseStatus.NO_ERROR
    first = lines[0]
    if first.startswith(UNKNOWN_COMMAND_MARKER):
        return ResponseStatus.UNKNOWN_COMMAND
    if first.startswith("Couldn't guess that module name. Does it exist?"):
        return ResponseStatus.OPTION_MISSING
    if first.startswith(("Interactive-commands", "<interactive>")):
        return ResponseStatus.INTERACTIVE_ERROR
    return ResponseStatus.NO_ERROR


@dataclasses.dataclass(frozen=True)
class ReplCompletions:
    """Parsed completion response."""

    #: Leading part of the input the candidates do not cover
    prefix: str
    #: Completion candidates, in REPL order
    candidates: tuple[str, ...]
    #: Number of candidates the REPL knows of, which may exceed those shown
    total: int


def completion_request(text: str, limit: int | None = None) -> str:
    """Return the request line completing ``text``.

    Examples
    --------
    >>> completion_request("ma")
    ':complete repl "ma"'
    >>> completion_request("Data.", limit=10)
    ':complete repl 1-10 "Data."'
    """
    parts = [COMPLETE_COMMAND]
    if limit is not None:
        if limit < 1:
            msg = "limit must be positive"
            raise ValueError(msg)
        parts.append(f"1-{limit}")
    parts.append(literal_encode(text))
    return " ".join(parts)


def parse_completion_response(response: str) -> ReplCompletions:
    """Parse the raw response of a completion request.

    Raises
    ------
    :exc:`~librepl.exc.CapabilityMissing`
        The REPL does not know the completion command.
    :exc:`~librepl.exc.MalformedCompletionResponse`
        The header or a candidate line cannot be parsed.
    :exc:`~librepl.exc.CompletionCountMismatch`
        The header's count disagrees with the number of candidate lines.

    Examples
    --------
    >>> parse_completion_response('2 2 "map"\\n"mapM"\\n"mapM_"')
    ReplCompletions(prefix='map', candidates=('mapM', 'mapM_'), total=2)
    """
    if repl_response_error_status(response) is ResponseStatus.UNKNOWN_COMMAND:
        raise exc.CapabilityMissing(COMPLETE_COMMAND)

    lines = _response_lines(response)
    if not lines:
        raise exc.MalformedCompletionResponse(response)

    header, *body = lines
    match = _HEADER_RE.match(header)
    if match is None:
        raise exc.MalformedCompletionResponse(header)

    try:
        prefix = literal_decode(match.group("prefix"))
    except exc.LiteralDecodeError as error:
        raise exc.MalformedCompletionResponse(header) from error

    shown = int(match.group("shown"))
    if shown != len(body):
        raise exc.CompletionCountMismatch(shown, len(body))

    candidates: list[str] = []
    for line in body:
        try:
            candidates.append(literal_decode(line))
        except exc.LiteralDecodeError as error:
            raise exc.MalformedCompletionResponse(line) from error

    return ReplCompletions(
        prefix=prefix,
        candidates=tuple(candidates),
        total=int(match.group("total")),
    )


def get_repl_completions(
    process: Process,
    text: str,
    *,
    limit: int | None = None,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    max_polls: int | None = SYNC_MAX_POLLS,
) -> ReplCompletions:
    """Ask the REPL for completions of ``text``, blocking until it answers.

    See :func:`~librepl.sync.queue_sync_request` for the blocking rules and
    :func:`parse_completion_response` for the errors raised.
    """
    request = completion_request(text, limit)
    response = queue_sync_request(
        process,
        request,
        poll_interval=poll_interval,
        max_polls=max_polls,
    )
    logger.debug("completion response for %r: %r", text, response)
    return parse_completion_response(response)


__all__ = [
    "ReplCompletions",
    "ResponseStatus",
    "completion_request",
    "get_repl_completions",
    "parse_completion_response",
    "repl_response_error_status",
]
