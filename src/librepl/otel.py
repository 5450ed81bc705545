"""OpenTelemetry helpers for librepl.

Spans are created through the OpenTelemetry API, which records nothing until
an SDK tracer provider is configured by the application. Set
:envvar:`LIBREPL_OTEL` to ``0`` to skip span creation entirely.
"""

from __future__ import annotations

import contextlib
import logging
import os
import typing as t

from opentelemetry import trace

from librepl.__about__ import __version__

logger = logging.getLogger(__name__)

_TRACER_NAME = "librepl"
_ATTRIBUTE_PREFIX = "librepl."


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value in {"1", "true"}:
        return True
    if value in {"0", "false"}:
        return False
    return None


def otel_enabled() -> bool:
    """Return True unless span creation was disabled by environment.

    Examples
    --------
    >>> from librepl.otel import otel_enabled
    >>> _ = otel_enabled()
    """
    return _env_flag("LIBREPL_OTEL") is not False


@contextlib.contextmanager
def start_span(name: str, **attributes: str | int | float | bool | None) -> t.Iterator[t.Any]:
    """Start a span named ``name`` carrying ``attributes``.

    Attributes are prefixed with ``librepl.``; ``None`` values are skipped.

    Examples
    --------
    >>> from librepl.otel import start_span
    >>> with start_span("librepl.test", request="1+1"):
    ...     pass
    """
    if not otel_enabled():
        yield None
        return
    tracer = trace.get_tracer(_TRACER_NAME, __version__)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(_ATTRIBUTE_PREFIX + key, value)
        yield span


__all__ = ["otel_enabled", "start_span"]
