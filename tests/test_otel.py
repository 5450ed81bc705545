"""Tests for librepl.otel."""

from __future__ import annotations

import pytest

from librepl.otel import otel_enabled, start_span


def test_spans_enabled_by_default() -> None:
    """Spans are created through the OpenTelemetry API by default."""
    assert otel_enabled()

    with start_span("librepl.test", request="1+1", skipped=None) as span:
        assert span is not None


@pytest.mark.parametrize("value", ["0", "false", "FALSE"])
def test_spans_disabled_by_env(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    """LIBREPL_OTEL=0 skips span creation."""
    monkeypatch.setenv("LIBREPL_OTEL", value)

    assert not otel_enabled()
    with start_span("librepl.test") as span:
        assert span is None


def test_unrecognized_env_value_keeps_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unknown values fall back to the default."""
    monkeypatch.setenv("LIBREPL_OTEL", "maybe")

    assert otel_enabled()
