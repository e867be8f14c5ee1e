"""Utilities for context tracing and the resolution context of the active run."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import TYPE_CHECKING, Generator

if TYPE_CHECKING:
    from .resolver import ResolutionContext


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "active_context",
    "current_context",
]


trace: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")

_active_context: contextvars.ContextVar["ResolutionContext | None"] = (
    contextvars.ContextVar("active_context", default=None)
)


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    stack = trace.get([])
    token = trace.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        t2 = perf_counter()
        trace.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, (t2 - t1))


@contextmanager
def active_context(
    context: "ResolutionContext",
) -> Generator["ResolutionContext", None, None]:
    """Make the resolution context visible to transformers for the duration of a run.

    The previous value is restored on exit, including when the run fails.
    """
    token = _active_context.set(context)
    try:
        yield context
    finally:
        _active_context.reset(token)


def current_context() -> "ResolutionContext | None":
    """Return the resolution context of the active run, if any."""
    return _active_context.get()
