"""Utilities for tracing the phases of the pipeline.

Phases nest, e.g. `contour render manifests > contour template`, and each one
is logged on entry and exit together with the time spent in it.
"""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


trace: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar("trace")


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log entry and exit of a named phase, nested under any enclosing phase."""
    phases = trace.get(()) + (name,)
    token = trace.set(phases)
    label = " > ".join(phases)
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        trace.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, perf_counter() - start)

