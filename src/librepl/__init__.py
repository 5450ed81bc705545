"""librepl, drive a long-lived interactive REPL subprocess from Python."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .command import Command
from .completion import ReplCompletions, get_repl_completions
from .process import Process
from .sync import queue_sync_request
from .transport import SubprocessTransport

__all__ = (
    "Command",
    "Process",
    "ReplCompletions",
    "SubprocessTransport",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
    "get_repl_completions",
    "queue_sync_request",
)
