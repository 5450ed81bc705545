"""Constants and tunable defaults for librepl.

librepl.constants
~~~~~~~~~~~~~~~~~

Protocol constants are fixed. Timing and sizing defaults can be overridden
through environment variables so test runs and slow hosts can widen them
without code changes.
"""

from __future__ import annotations

import os

#: Reserved control byte (EOT, decimal 4) ending every response. It is never
#: escaped in normal output and is stripped from delivered response text.
SENTINEL = "\x04"

#: Line terminator appended to every outbound request
LINE_TERMINATOR = "\n"

#: REPL directive that makes the prompt the bare sentinel byte
PROMPT_COMMAND = ':set prompt "\\4"'

#: Prefix of the identifier-completion request
COMPLETE_COMMAND = ":complete repl"

#: First-line marker of a REPL rejecting a colon command it does not know
UNKNOWN_COMMAND_MARKER = "unknown command"

#: Seconds the synchronous bridge waits for output on each poll
#: Can be configured via :envvar:`LIBREPL_POLL_INTERVAL_SECONDS`
POLL_INTERVAL_SECONDS = float(os.getenv("LIBREPL_POLL_INTERVAL_SECONDS", 0.1))

#: Maximum polls of the synchronous bridge before giving up
#: Can be configured via :envvar:`LIBREPL_SYNC_MAX_POLLS`
#: Defaults to 600 polls (one minute at the default interval)
SYNC_MAX_POLLS = int(os.getenv("LIBREPL_SYNC_MAX_POLLS", 600))

#: Re-invocations of a live callback allowed for a single chunk
#: Can be configured via :envvar:`LIBREPL_MAX_LIVE_ITERATIONS`
MAX_LIVE_ITERATIONS = int(os.getenv("LIBREPL_MAX_LIVE_ITERATIONS", 1024))

#: Bytes requested per read from the subprocess output pipe
#: Can be configured via :envvar:`LIBREPL_READ_CHUNK_SIZE`
READ_CHUNK_SIZE = int(os.getenv("LIBREPL_READ_CHUNK_SIZE", 4096))

#: Seconds to wait for a terminated subprocess before killing it
CLOSE_TIMEOUT_SECONDS = 1.0

#: Direction tags used by the traffic log
TRAFFIC_SENT_TAG = "-> "
TRAFFIC_RECEIVED_TAG = "<- "
