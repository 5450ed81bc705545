"""REPL process handle.

librepl.process
~~~~~~~~~~~~~~~

A :class:`Process` owns one transport, one :class:`~librepl.command_queue.CommandQueue`,
one :class:`~librepl.buffer.ResponseBuffer`, and the flags a session layer
reads while commands run. Commands execute strictly one at a time, in
enqueue order.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t

from librepl import exc
from librepl.buffer import ResponseBuffer
from librepl.command import Command
from librepl.command_queue import CommandQueue
from librepl.constants import LINE_TERMINATOR, MAX_LIVE_ITERATIONS, PROMPT_COMMAND
from librepl.driver import DriverState, ProtocolDriver
from librepl.traffic import TrafficLog
from librepl.transport import EventKind

if t.TYPE_CHECKING:
    import types

    from typing_extensions import Self

    from librepl.transport import Transport

logger = logging.getLogger(__name__)

EndedListener = t.Callable[["Process"], t.Any]


@dataclasses.dataclass
class ProcessFlags:
    """Status flags of a REPL process."""

    #: An intentional restart is in progress; its termination is expected
    restarting: bool = False
    #: An expression evaluation is running
    evaluating: bool = False
    #: Input was forwarded to the evaluating expression's stdin
    sent_stdin: bool = False
    #: Missing-import suggestions were already offered for this command
    suggested_imports: bool = False

    def clear_command_flags(self) -> None:
        """Reset the flags scoped to a single command."""
        self.evaluating = False
        self.sent_stdin = False
        self.suggested_imports = False


@dataclasses.dataclass
class _StartupState:
    process: Process
    lines: tuple[str, ...]


def _issue_startup(state: _StartupState) -> None:
    state.process.send(LINE_TERMINATOR.join(state.lines))


def _complete_startup(state: _StartupState, response: str) -> None:
    state.process.startup_response = response
    logger.debug("process %s started: %r", state.process.name, response)


class Process:
    """Serialized command channel to an interactive subprocess.

    Parameters
    ----------
    transport : :class:`~librepl.transport.Transport`
        Connection to the subprocess.
    name : str
        Identifier of the owning session, passed along in logs.
    traffic_log : :class:`~librepl.traffic.TrafficLog`, optional
        Mirror of all traffic. Defaults to one logging under
        ``librepl.traffic.<name>``.
    max_live_iterations : int
        See :class:`~librepl.driver.ProtocolDriver`.

    Examples
    --------
    >>> from librepl.testing import ScriptedTransport
    >>> transport = ScriptedTransport(script={"1+1": "2\\x04"})
    >>> process = Process(transport, name="demo")
    >>> process.start()
    >>> replies = []
    >>> process.enqueue(
    ...     Command(
    ...         state=replies,
    ...         issue=lambda state: process.send("1+1"),
    ...         complete=lambda state, response: state.append(response),
    ...     )
    ... )
    >>> process.pump()
    1
    >>> replies
    ['2']
    """

    def __init__(
        self,
        transport: Transport,
        *,
        name: str = "repl",
        traffic_log: TrafficLog | None = None,
        max_live_iterations: int = MAX_LIVE_ITERATIONS,
    ) -> None:
        self.name = name
        self.transport = transport
        self.queue = CommandQueue()
        self.buffer = ResponseBuffer()
        self.flags = ProcessFlags()
        self.traffic = traffic_log if traffic_log is not None else TrafficLog(name=name)
        self.driver = ProtocolDriver(self, max_live_iterations=max_live_iterations)
        self.startup_response: str | None = None
        self._ended_listeners: list[EndedListener] = []
        self._ended_notified = False

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"state={self.state.name}, pending={len(self.queue)})"
        )

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()

    # Lifecycle ---------------------------------------------------------
    @property
    def state(self) -> DriverState:
        """Return the protocol state."""
        return self.driver.state

    def is_alive(self) -> bool:
        """Return True while the subprocess is running."""
        return self.transport.is_alive()

    def start(self) -> None:
        """Start the transport and arm the ended notification."""
        self.transport.start()
        self._ended_notified = False

    def close(self) -> None:
        """Stop the transport and drop all command state.

        No ended notification fires for a close.
        """
        self.flags.restarting = True
        try:
            self.transport.close()
            self.reset()
        finally:
            self.flags.restarting = False
        self._ended_notified = True

    def restart(self, transport: Transport | None = None) -> None:
        """Replace the subprocess with a fresh one.

        The old transport is closed while ``restarting`` is set, so its
        termination does not fire the ended notification. Pending commands
        are dropped.

        Parameters
        ----------
        transport : :class:`~librepl.transport.Transport`, optional
            New transport. Defaults to restarting the current one.
        """
        logger.debug("restarting process %s", self.name)
        self.flags.restarting = True
        try:
            self.transport.close()
            self.reset()
            if transport is not None:
                self.transport = transport
            self.transport.start()
        finally:
            self.flags.restarting = False
        self._ended_notified = False

    def reset(self) -> None:
        """Clear the buffer, current command, pending queue and command flags."""
        self.buffer.reset()
        self.queue.release()
        self.queue.clear()
        self.flags.clear_command_flags()
        self.driver.reset()

    # Ended notification ------------------------------------------------
    def add_ended_listener(self, listener: EndedListener) -> None:
        """Register ``listener(process)`` to be called when the process ends."""
        self._ended_listeners.append(listener)

    def remove_ended_listener(self, listener: EndedListener) -> None:
        """Unregister a listener added by :meth:`add_ended_listener`."""
        self._ended_listeners.remove(listener)

    def notify_ended(self) -> None:
        """Fire the ended notification, at most once per termination.

        Suppressed while a restart is in progress. Listener failures are
        logged and do not stop later listeners.
        """
        if self.flags.restarting:
            logger.debug("process %s: ended notification suppressed by restart", self.name)
            return
        if self._ended_notified:
            return
        self._ended_notified = True
        logger.info("process %s ended", self.name)
        for listener in list(self._ended_listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("ended listener %r failed", listener)

    # Commands ----------------------------------------------------------
    def enqueue(self, cmd: Command[t.Any]) -> None:
        """Append ``cmd`` to the queue and start it if the process is idle.

        Never raises for a dead process: the queue is flushed and the ended
        notification fires instead.
        """
        self.queue.append(cmd)
        self.try_start_next()

    def try_start_next(self) -> None:
        """See :meth:`~librepl.driver.ProtocolDriver.try_start_next`."""
        self.driver.try_start_next()

    def queue_flushed(self) -> bool:
        """Return True when no command is pending or running."""
        return self.queue.flushed

    def send_startup(self, extra_lines: t.Iterable[str] = ()) -> None:
        """Queue the startup command that installs the sentinel prompt.

        ``extra_lines`` are sent first; the prompt directive is always last
        so the batch produces exactly one sentinel. The banner and any
        option output end up in :attr:`startup_response`.
        """
        lines = (*extra_lines, PROMPT_COMMAND)
        self.enqueue(
            Command(
                state=_StartupState(process=self, lines=lines),
                issue=_issue_startup,
                complete=_complete_startup,
            ),
        )

    # Transport ---------------------------------------------------------
    def send(self, text: str) -> bool:
        """Write ``text`` plus a line terminator to the subprocess.

        Returns False if the subprocess is not running, after firing the
        ended notification (unless a restart is in progress).
        """
        line = text + LINE_TERMINATOR
        try:
            self.transport.write(line)
        except exc.TransportClosed:
            logger.debug("process %s: cannot send, not running", self.name)
            self.notify_ended()
            return False
        self.traffic.sent(line)
        return True

    def handle_output(self, chunk: str) -> None:
        """Route a raw output chunk to the driver."""
        self.driver.feed(chunk)

    def handle_terminated(self, returncode: int | None = None) -> None:
        """Route a subprocess termination to the driver."""
        self.driver.terminated(returncode)

    def pump(self, timeout: float | None = 0) -> int:
        """Dispatch transport events, waiting up to ``timeout`` for the first.

        Pending commands left idle (for example after a failed ``issue``) are
        started afterwards. Every event is dispatched even if a callback
        raises; the first error is re-raised at the end. Returns the number
        of events dispatched.
        """
        events = self.transport.poll(timeout)
        error: Exception | None = None
        for event in events:
            try:
                if event.kind is EventKind.OUTPUT:
                    self.handle_output(event.data)
                elif event.kind is EventKind.TERMINATED:
                    self.handle_terminated(event.returncode)
            except Exception as callback_error:
                if error is None:
                    error = callback_error
        if len(self.queue) and not self.queue.is_busy:
            self.try_start_next()
        if error is not None:
            raise error
        return len(events)


__all__ = ["EndedListener", "Process", "ProcessFlags"]
