"""Utility functions and decorators for localrecs."""

import time
import logging
from contextlib import contextmanager
from functools import wraps
from typing import TypeVar, Callable, Iterator

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Stopwatch:
    """Elapsed wall time of one ``timed`` block, in milliseconds."""

    def __init__(self, label: str):
        self.label = label
        self.elapsed_ms = 0.0


@contextmanager
def timed(label: str, timings: dict[str, float] | None = None) -> Iterator[Stopwatch]:
    """
    Context manager that measures the wall time of its block.

    Args:
        label: Stage name, used for the debug log and as the ``timings`` key
        timings: Optional dict that receives ``label -> elapsed ms``

    Example:
        timings = {}
        with timed("vocabulary", timings):
            vocab = build_vocabulary(items)
    """
    watch = Stopwatch(label)
    start = time.perf_counter()
    try:
        yield watch
    finally:
        watch.elapsed_ms = (time.perf_counter() - start) * 1000.0
        if timings is not None:
            timings[label] = watch.elapsed_ms
        logger.debug(f"{label} took {watch.elapsed_ms:.1f}ms")


def log_duration(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that logs how long each call of ``func`` took.

    Example:
        @log_duration
        def compute_embeddings(self):
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> T:
        with timed(func.__name__) as watch:
            result = func(*args, **kwargs)
        logger.info(f"{func.__name__} finished in {watch.elapsed_ms:.1f}ms")
        return result

    return wrapper
