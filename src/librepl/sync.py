"""Blocking request/response on top of the command queue.

librepl.sync
~~~~~~~~~~~~

:func:`queue_sync_request` is the only blocking operation in librepl. It
enqueues an ordinary :class:`~librepl.command.Command` and then polls the
transport on the calling thread until that command completes.

Warnings
--------
Do not call it from a ``live`` or ``complete`` callback. Such callbacks run
inside the poll loop that would have to deliver the nested response, and
the nested request would wait behind the command whose callback is
running.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t

from librepl import exc
from librepl.command import Command
from librepl.constants import POLL_INTERVAL_SECONDS, SYNC_MAX_POLLS
from librepl.otel import start_span

if t.TYPE_CHECKING:
    from librepl.process import Process

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class SyncRequestState:
    """Single-slot cell filled by the completion of a synchronous request."""

    process: Process
    request: str
    response: str | None = None


def _issue_request(state: SyncRequestState) -> None:
    state.process.send(state.request)


def _store_response(state: SyncRequestState, response: str) -> None:
    state.response = response


def _is_scheduled(process: Process, cmd: Command[SyncRequestState]) -> bool:
    if process.queue.current is cmd:
        return True
    return any(pending is cmd for pending in process.queue.pending)


def queue_sync_request(
    process: Process,
    request: str,
    *,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    max_polls: int | None = SYNC_MAX_POLLS,
) -> str:
    """Send ``request`` after all queued commands and block for its response.

    Parameters
    ----------
    process : :class:`~librepl.process.Process`
        Process to query.
    request : str
        Request line, without terminator.
    poll_interval : float
        Seconds to wait for output on each poll.
    max_polls : int, optional
        Polls before giving up. ``None`` waits forever.

    Returns
    -------
    str
        Response text with the sentinel stripped.

    Raises
    ------
    :exc:`~librepl.exc.ProcessEnded`
        The subprocess ended before answering.
    :exc:`~librepl.exc.SyncRequestTimeout`
        ``max_polls`` was exhausted. The request stays queued; its late
        response is discarded.

    Errors raised by callbacks of other commands while waiting are logged
    by the driver and do not abort the request. An error that drops this
    request before it is answered propagates.

    Examples
    --------
    >>> from librepl.process import Process
    >>> from librepl.testing import ScriptedTransport
    >>> process = Process(ScriptedTransport(script={"1+1": "2\\x04"}))
    >>> process.start()
    >>> queue_sync_request(process, "1+1")
    '2'
    """
    state = SyncRequestState(process=process, request=request)
    cmd = Command(state=state, issue=_issue_request, complete=_store_response)

    with start_span("librepl.sync_request", process=process.name, request=request):
        process.enqueue(cmd)
        polls = 0
        while state.response is None:
            if not _is_scheduled(process, cmd):
                raise exc.ProcessEnded(process.name, request)
            if max_polls is not None and polls >= max_polls:
                logger.warning(
                    "process %s: no response to %r after %d polls",
                    process.name,
                    request,
                    polls,
                )
                raise exc.SyncRequestTimeout(request, polls)
            try:
                process.try_start_next()
                process.pump(poll_interval)
            except Exception:
                # Errors raised by other commands' callbacks stay with them.
                if state.response is None and not _is_scheduled(process, cmd):
                    raise
                logger.debug(
                    "process %s: callback error while waiting for %r",
                    process.name,
                    request,
                    exc_info=True,
                )
            polls += 1

    return state.response


__all__ = ["SyncRequestState", "queue_sync_request"]
