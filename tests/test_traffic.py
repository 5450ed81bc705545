"""Tests for librepl.traffic."""

from __future__ import annotations

import logging

import pytest

from librepl.process import Process
from librepl.testing import ScriptedTransport
from librepl.traffic import TrafficLog


def test_lines_are_buffered_per_direction() -> None:
    """Partial lines wait for their newline; directions never mix."""
    lines: list[str] = []
    log = TrafficLog(sink=lines.append)

    log.received("par")
    log.sent(":type map\n")
    log.received("tial\nrest")

    assert lines == ["-> :type map\n", "<- partial\n"]

    log.flush()
    assert lines[-1] == "<- rest\n"

    log.flush()
    assert len(lines) == 3


def test_sentinel_is_rendered_visibly() -> None:
    """The sentinel byte is shown as ^D in the mirror."""
    lines: list[str] = []
    log = TrafficLog(sink=lines.append)

    log.received("2\n\x04")
    log.flush()

    assert lines == ["<- 2\n", "<- ^D\n"]


def test_traffic_goes_to_logger(caplog: pytest.LogCaptureFixture) -> None:
    """Lines are logged at DEBUG under librepl.traffic.<name>."""
    log = TrafficLog(name="ghci")

    with caplog.at_level(logging.DEBUG, logger="librepl.traffic"):
        log.sent("1+1\n")

    records = [r for r in caplog.records if r.name == "librepl.traffic.ghci"]
    assert [r.getMessage() for r in records] == ["-> 1+1"]


def test_process_mirrors_traffic() -> None:
    """Sent requests and received output, even idle output, are mirrored."""
    lines: list[str] = []
    transport = ScriptedTransport(script={"1+1": "2\n\x04"})
    process = Process(transport, traffic_log=TrafficLog(sink=lines.append))
    process.start()

    process.handle_output("banner\n")
    assert process.send("1+1") is True
    process.pump()

    assert lines == ["<- banner\n", "-> 1+1\n", "<- 2\n"]


def test_mirror_does_not_change_responses() -> None:
    """Mirroring idle output leaves protocol state alone."""
    transport = ScriptedTransport()
    process = Process(transport, traffic_log=TrafficLog(sink=None))
    process.start()

    process.handle_output("noise\n")

    assert process.buffer.is_empty
