"""Utilities for tracing the rendering of resources."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


render_stack: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "render_stack", default=()
)


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log the start and end of a named step along with its elapsed time."""
    stack = render_stack.get() + (name,)
    token = render_stack.set(stack)
    label = " > ".join(stack)
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        render_stack.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.4fs)", label, perf_counter() - start)
