"""Phase timing for lifecycle operations.

Off by default. ``-v`` switches it on for the current context; each
``@traced`` service call then records a span tree (one child per
``trace_span`` block, e.g. ``recur`` and ``archive``) and attaches it to
``ServiceResult.meta["telemetry"]``. With telemetry off the decorator
costs one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from recurctl.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("recurctl_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("recurctl_active_span", default=None)

log = structlog.get_logger("recurctl.telemetry")


@dataclass
class Span:
    """Wall-clock timing of one named step and the steps nested in it."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        tree: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            tree["annotations"] = dict(self.annotations)
        if self.children:
            tree["children"] = [child.to_dict() for child in self.children]
        return tree


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a block as a child of the active span.

    Yields None (and records nothing) unless telemetry is on and a
    ``@traced`` call is in progress.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    span = Span(name=name, parent=parent)
    parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a root span around a service method.

    The root span is annotated with the task path and the outcome when
    the method returns a ServiceResult carrying them.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        token = _active.set(root)
        try:
            result = func(*args, **kwargs)
        finally:
            root.end()
            _active.reset(token)

        if not isinstance(result, ServiceResult):
            return result
        for key in ("path", "outcome"):
            if key in result.data:
                root.annotate(key, result.data[key])
        log.debug("span.complete", span_name=root.name, duration_ms=round(root.duration_ms, 2))
        meta = {**(result.meta or {}), "telemetry": root.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn span recording on for the current context (``-v``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
