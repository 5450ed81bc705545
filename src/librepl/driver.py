"""Protocol driver: turns output chunks into command completions.

librepl.driver
~~~~~~~~~~~~~~

The driver is the only writer of a process's response buffer and current
command slot. It runs on whichever thread feeds it; there is no locking, so
callers must feed a given process from one thread.

States
------
``IDLE``
    No current command. Output is mirrored and dropped.
``AWAITING``
    A command was issued and its response is accumulating.
``FINALIZING``
    The sentinel was seen and ``complete`` is running.
"""

from __future__ import annotations

import enum
import logging
import typing as t

from librepl.constants import MAX_LIVE_ITERATIONS
from librepl.otel import start_span

if t.TYPE_CHECKING:
    from librepl.command import Command
    from librepl.process import Process

logger = logging.getLogger(__name__)


class DriverState(enum.Enum):
    """Protocol state of a process."""

    IDLE = enum.auto()
    AWAITING = enum.auto()
    FINALIZING = enum.auto()


class ProtocolDriver:
    """Drive the command lifecycle of one :class:`~librepl.process.Process`.

    Parameters
    ----------
    process : :class:`~librepl.process.Process`
        Owner of the queue and response buffer being driven.
    max_live_iterations : int
        Re-invocations of a ``live`` callback allowed for a single chunk.
        The buffer cannot grow while the callback loops, so a callback that
        keeps returning ``True`` is cut off here and resumed on the next
        chunk.
    """

    def __init__(
        self,
        process: Process,
        *,
        max_live_iterations: int = MAX_LIVE_ITERATIONS,
    ) -> None:
        self.process = process
        self.max_live_iterations = max_live_iterations
        self._finalizing = False
        self._live_failed = False
        self._live_stalled = False

    @property
    def state(self) -> DriverState:
        """Return the current protocol state."""
        if self._finalizing:
            return DriverState.FINALIZING
        if self.process.queue.is_busy:
            return DriverState.AWAITING
        return DriverState.IDLE

    def reset(self) -> None:
        """Forget per-command bookkeeping."""
        self._finalizing = False
        self._live_failed = False
        self._live_stalled = False

    # Queue -------------------------------------------------------------
    def try_start_next(self) -> None:
        """Issue the next pending command if the process is idle and alive.

        A dead process has its pending commands dropped and its ended
        notification fired instead. If ``issue`` raises, the command is
        dropped and the error propagates; later commands stay queued.
        """
        process = self.process
        queue = process.queue
        if queue.is_busy:
            return

        if not process.is_alive():
            dropped = queue.clear()
            process.buffer.reset()
            logger.debug(
                "process %s not running; flushed %d pending commands",
                process.name,
                dropped,
            )
            process.notify_ended()
            return

        cmd = queue.popleft()
        if cmd is None:
            return

        queue.install(cmd)
        process.flags.clear_command_flags()
        self.reset()
        logger.debug("process %s issuing %r", process.name, cmd)
        try:
            with start_span("librepl.command.issue", process=process.name):
                cmd.run_issue()
        except Exception:
            logger.exception("issue callback failed; dropping command %r", cmd)
            if queue.current is cmd:
                queue.release()
                process.buffer.reset()
            raise

    # Inbound -----------------------------------------------------------
    def feed(self, chunk: str) -> None:
        """Consume one raw output chunk.

        The chunk is appended to the response buffer, the current command's
        ``live`` callback runs, and a sentinel at or after the scan cursor
        finalizes the command. An exception from ``live`` is re-raised after
        sentinel detection so the queue still advances.
        """
        process = self.process
        process.traffic.received(chunk)

        cmd = process.queue.current
        if cmd is None or self._finalizing:
            if chunk:
                logger.debug(
                    "process %s: ignoring %d chars of output with no command",
                    process.name,
                    len(chunk),
                )
            return

        buffer = process.buffer
        buffer.append(chunk)

        live_error: Exception | None = None
        try:
            self._run_live(cmd)
        except Exception as error:
            live_error = error

        index = buffer.find_sentinel()
        if index is not None:
            self._finalize(cmd, index)

        if live_error is not None:
            raise live_error

    def terminated(self, returncode: int | None = None) -> None:
        """Handle subprocess termination.

        The in-flight command is dropped without ``complete``, pending
        commands are discarded, and the ended notification fires unless a
        restart is in progress. A restart suppresses exactly one
        termination.
        """
        process = self.process
        process.traffic.flush()

        cmd = process.queue.release()
        if cmd is not None:
            logger.debug("process %s dropped in-flight %r", process.name, cmd)
        process.queue.clear()
        process.buffer.reset()
        self.reset()

        logger.debug("process %s terminated (returncode=%s)", process.name, returncode)
        if process.flags.restarting:
            logger.debug("process %s termination expected by restart", process.name)
            process.flags.restarting = False
            return
        process.notify_ended()

    # Internals ---------------------------------------------------------
    def _run_live(self, cmd: Command[t.Any]) -> None:
        if self._live_failed:
            return
        content = self.process.buffer.content
        iterations = 0
        try:
            while cmd.run_live(content):
                iterations += 1
                if iterations >= self.max_live_iterations:
                    # warn once per command, the callback is resumed per chunk
                    log = logger.debug if self._live_stalled else logger.warning
                    log(
                        "live callback of %r made no progress after %d calls; "
                        "waiting for more output",
                        cmd,
                        iterations,
                    )
                    self._live_stalled = True
                    break
        except Exception:
            self._live_failed = True
            logger.exception("live callback failed for %r", cmd)
            raise

    def _finalize(self, cmd: Command[t.Any], index: int) -> None:
        process = self.process
        buffer = process.buffer
        response = buffer.content[:index]
        trailing = buffer.content[index + 1 :]
        if trailing:
            logger.debug(
                "process %s: discarding %d chars after sentinel",
                process.name,
                len(trailing),
            )

        self._finalizing = True
        try:
            cmd.run_complete(response)
        except Exception:
            logger.exception("complete callback failed for %r", cmd)
        finally:
            buffer.reset()
            process.queue.release()
            self.reset()

        self.try_start_next()


__all__ = ["DriverState", "ProtocolDriver"]
