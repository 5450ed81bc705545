"""Transport adapters between a :class:`~librepl.process.Process` and its REPL.

librepl.transport
~~~~~~~~~~~~~~~~~

A transport writes request text to the subprocess and hands back raw output
chunks and termination events. Events are collected by :meth:`poll` on the
caller's thread, so protocol state is only ever touched by one thread even
though :class:`SubprocessTransport` reads the pipe from a background thread.
"""

from __future__ import annotations

import codecs
import dataclasses
import enum
import logging
import os
import queue
import shutil
import subprocess
import threading
import typing as t

from librepl import exc
from librepl.constants import CLOSE_TIMEOUT_SECONDS, READ_CHUNK_SIZE

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    """Kinds of inbound transport events."""

    OUTPUT = enum.auto()
    TERMINATED = enum.auto()


@dataclasses.dataclass(frozen=True)
class TransportEvent:
    """Raw output chunk or subprocess termination."""

    kind: EventKind
    data: str = ""
    returncode: int | None = None

    @classmethod
    def output(cls, data: str) -> TransportEvent:
        """Return an output event."""
        return cls(kind=EventKind.OUTPUT, data=data)

    @classmethod
    def terminated(cls, returncode: int | None = None) -> TransportEvent:
        """Return a termination event."""
        return cls(kind=EventKind.TERMINATED, returncode=returncode)


@t.runtime_checkable
class Transport(t.Protocol):
    """Protocol that REPL transports must satisfy."""

    def start(self) -> None: ...

    def close(self) -> None: ...

    def is_alive(self) -> bool: ...

    def write(self, data: str) -> None: ...

    def poll(self, timeout: float | None = None) -> list[TransportEvent]: ...


class SubprocessTransport:
    """Run a REPL as a child process connected through pipes.

    Parameters
    ----------
    argv : sequence of str
        Command line. ``argv[0]`` is resolved through ``PATH``.
    cwd : str or os.PathLike, optional
        Working directory of the child.
    env : dict, optional
        Variables layered over the current environment.
    merge_stderr : bool
        Route stderr into the output stream. REPLs print diagnostics on
        stderr that belong to the response of the current command.
    read_size : int
        Bytes requested per pipe read.
    """

    def __init__(
        self,
        argv: t.Sequence[str],
        *,
        cwd: str | os.PathLike[str] | None = None,
        env: dict[str, str] | None = None,
        merge_stderr: bool = True,
        read_size: int = READ_CHUNK_SIZE,
    ) -> None:
        if not argv:
            msg = "argv must name an executable"
            raise ValueError(msg)
        self.argv = list(argv)
        self.cwd = cwd
        self._env_override = env
        self.merge_stderr = merge_stderr
        self.read_size = read_size

        self.process: subprocess.Popen[bytes] | None = None
        self._events: queue.Queue[TransportEvent] = queue.Queue()
        self._reader_thread: threading.Thread | None = None
        self._stderr_thread: threading.Thread | None = None
        self._write_lock = threading.Lock()

    def __repr__(self) -> str:
        pid = self.process.pid if self.process is not None else None
        return f"{self.__class__.__name__}(argv={self.argv!r}, pid={pid})"

    # Lifecycle ---------------------------------------------------------
    def start(self) -> None:
        """Spawn the child process and its reader threads."""
        if self.is_alive():
            return

        executable = shutil.which(self.argv[0])
        if executable is None:
            raise exc.ReplCommandNotFound(self.argv[0])

        env = os.environ.copy()
        if self._env_override:
            env.update(self._env_override)

        argv = [executable, *self.argv[1:]]
        logger.debug("starting REPL process: %s", subprocess.list2cmdline(argv))
        self._events = queue.Queue()
        self.process = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if self.merge_stderr else subprocess.PIPE,
            cwd=self.cwd,
            env=env,
            bufsize=0,
        )

        self._reader_thread = threading.Thread(
            target=self._reader,
            args=(self.process, self._events),
            name="librepl-reader",
            daemon=True,
        )
        self._reader_thread.start()

        if not self.merge_stderr:
            self._stderr_thread = threading.Thread(
                target=self._drain_stderr,
                args=(self.process,),
                name="librepl-stderr",
                daemon=True,
            )
            self._stderr_thread.start()

    def close(self) -> None:
        """Terminate the child process; pending events are discarded."""
        proc = self.process
        if proc is None:
            return

        try:
            if proc.stdin is not None:
                proc.stdin.close()
        except OSError:
            logger.debug("stdin already closed", exc_info=True)

        try:
            proc.terminate()
            proc.wait(timeout=CLOSE_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        finally:
            self.process = None
            self._events = queue.Queue()

    def is_alive(self) -> bool:
        """Return True while the child process is running."""
        return self.process is not None and self.process.poll() is None

    # I/O ---------------------------------------------------------------
    def write(self, data: str) -> None:
        """Write ``data`` to the child's stdin.

        Raises
        ------
        :exc:`~librepl.exc.TransportClosed`
            When the child is not running or the pipe is broken.
        """
        proc = self.process
        if proc is None or proc.stdin is None or proc.poll() is not None:
            msg = "REPL process is not running"
            raise exc.TransportClosed(msg)

        with self._write_lock:
            try:
                proc.stdin.write(data.encode("utf-8"))
                proc.stdin.flush()
            except (BrokenPipeError, ValueError, OSError):
                logger.debug("write to REPL failed", exc_info=True)
                msg = "REPL process closed its input"
                raise exc.TransportClosed(msg) from None

    def poll(self, timeout: float | None = None) -> list[TransportEvent]:
        """Return events that arrived, waiting up to ``timeout`` for the first.

        ``timeout=0`` never blocks; ``None`` blocks until an event arrives.
        """
        events: list[TransportEvent] = []
        try:
            if timeout == 0:
                events.append(self._events.get_nowait())
            else:
                events.append(self._events.get(timeout=timeout))
        except queue.Empty:
            return events

        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    # Internals ---------------------------------------------------------
    def _reader(
        self,
        process: subprocess.Popen[bytes],
        events: queue.Queue[TransportEvent],
    ) -> None:
        assert process.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="backslashreplace")
        fd = process.stdout.fileno()
        try:
            while True:
                raw = os.read(fd, self.read_size)
                if not raw:
                    break
                text = decoder.decode(raw)
                if text:
                    events.put(TransportEvent.output(text))
            tail = decoder.decode(b"", final=True)
            if tail:
                events.put(TransportEvent.output(tail))
        except OSError:
            logger.debug("REPL output pipe closed", exc_info=True)
        except Exception:  # pragma: no cover - defensive
            logger.exception("REPL reader thread crashed")
        finally:
            returncode = process.wait()
            logger.debug("REPL process exited with %s", returncode)
            events.put(TransportEvent.terminated(returncode))

    def _drain_stderr(self, process: subprocess.Popen[bytes]) -> None:
        if process.stderr is None:
            return
        for err_line in process.stderr:
            logger.debug(
                "REPL stderr: %s",
                err_line.decode("utf-8", errors="backslashreplace").rstrip("\n"),
            )


__all__ = ["EventKind", "SubprocessTransport", "Transport", "TransportEvent"]
