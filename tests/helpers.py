"""Recording commands shared across librepl tests."""

from __future__ import annotations

import dataclasses
import typing as t

from librepl.command import Command

if t.TYPE_CHECKING:
    from librepl.process import Process


@dataclasses.dataclass
class CommandRecord:
    """State of a recording command."""

    name: str
    process: Process
    log: list[tuple[str, str]]
    request: str | None = None
    responses: list[str] = dataclasses.field(default_factory=list)
    buffer_empty_at_issue: bool | None = None


def _issue(record: CommandRecord) -> None:
    record.log.append(("issue", record.name))
    record.buffer_empty_at_issue = record.process.buffer.is_empty
    if record.request is not None:
        record.process.send(record.request)


def _complete(record: CommandRecord, response: str) -> None:
    record.log.append(("complete", record.name))
    record.responses.append(response)


def recording_command(
    process: Process,
    name: str,
    log: list[tuple[str, str]],
    *,
    request: str | None = None,
) -> Command[CommandRecord]:
    """Return a command appending its issue/complete calls to ``log``."""
    return Command(
        state=CommandRecord(name=name, process=process, log=log, request=request),
        issue=_issue,
        complete=_complete,
    )
