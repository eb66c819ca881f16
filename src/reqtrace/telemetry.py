"""OpenTelemetry instrumentation for reqtrace operations.

This module provides a thread-safe tracer cache and the @traced decorator
for automatic span creation around ingestion phases, correlation,
aggregation and report export. Supports custom attributes and exception
recording.

Uses the OpenTelemetry API (tracer from the global TracerProvider); without
a configured SDK every span is a no-op.

Example:
    >>> from reqtrace.telemetry import traced
    >>>
    >>> @traced(operation_name="reqtrace.correlate")
    ... def correlate(requirements, links, evidence):
    ...     ...

Attributes:
    TRACER_NAME: Instrumentation library name for OpenTelemetry.
"""

from __future__ import annotations

import functools
import threading
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar, overload

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Callable

    from opentelemetry.trace import Tracer

P = ParamSpec("P")
R = TypeVar("R")

TRACER_NAME = "reqtrace"
"""OpenTelemetry instrumentation library name."""

_tracers: dict[str, Tracer] = {}
_tracer_init_failed: bool = False
_lock = threading.Lock()


def get_tracer(name: str = TRACER_NAME) -> Tracer:
    """Get or create a cached tracer instance.

    Uses double-checked locking so both ingestion threads share one tracer.
    Returns a NoOpTracer if OpenTelemetry initialization fails.

    Args:
        name: The tracer name. Each unique name gets its own tracer.

    Returns:
        OpenTelemetry Tracer instance.
    """
    global _tracer_init_failed

    if name in _tracers:
        return _tracers[name]

    if _tracer_init_failed:
        return trace.NoOpTracer()

    with _lock:
        if name in _tracers:
            return _tracers[name]

        if _tracer_init_failed:
            return trace.NoOpTracer()

        try:
            tracer = trace.get_tracer(name)
            _tracers[name] = tracer
            return tracer
        except Exception:
            _tracer_init_failed = True
            return trace.NoOpTracer()


def reset_tracer() -> None:
    """Reset tracer state for test isolation."""
    global _tracer_init_failed
    with _lock:
        _tracers.clear()
        _tracer_init_failed = False


@overload
def traced(
    func: Callable[P, R],
    *,
    operation_name: str | None = ...,
    attributes: dict[str, Any] | None = ...,
) -> Callable[P, R]: ...


@overload
def traced(
    func: None = ...,
    *,
    operation_name: str | None = ...,
    attributes: dict[str, Any] | None = ...,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def traced(
    func: Callable[P, R] | None = None,
    *,
    operation_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to create OpenTelemetry spans for functions.

    Can be used with or without parentheses:
        @traced
        def my_function(): ...

        @traced(operation_name="reqtrace.aggregate")
        def my_function(): ...

    Exceptions are recorded on the span, which is marked as ERROR, and
    re-raised unchanged.

    Args:
        func: The function to decorate (when used without parentheses).
        operation_name: Custom span name. Defaults to function name.
        attributes: Static attributes to add to the span.

    Returns:
        Decorated function that creates a span on each call.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            tracer = get_tracer()
            span_name = operation_name or fn.__name__

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("reqtrace.operation", fn.__name__)

                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)

                try:
                    return fn(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


__all__ = [
    "TRACER_NAME",
    "get_tracer",
    "reset_tracer",
    "traced",
]
