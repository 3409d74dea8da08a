"""
Operation Tracing
Structured duration logging for planning, generation and preview operations
"""

import time
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterator

from core.logging_config import get_logger

logger = get_logger(__name__)

# Operations slower than this are logged as warnings
SLOW_OPERATION_SECONDS = 30.0


def _finish(operation: str, start: float, error: BaseException | None, **kwargs: Any) -> None:
    duration_ms = (time.perf_counter() - start) * 1000
    if error is not None:
        logger.error(
            "operation_error",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            duration_ms=round(duration_ms, 1),
            **kwargs,
        )
    elif duration_ms > SLOW_OPERATION_SECONDS * 1000:
        logger.warning("operation_slow", operation=operation, duration_ms=round(duration_ms, 1), **kwargs)
    else:
        logger.debug("operation_end", operation=operation, duration_ms=round(duration_ms, 1), **kwargs)


@contextmanager
def trace_operation(operation: str, **kwargs: Any) -> Iterator[None]:
    """
    Context manager for tracing operations with structured logging.

    Args:
        operation: Name of the operation
        **kwargs: Additional context to log
    """
    start = time.perf_counter()
    logger.debug("operation_start", operation=operation, **kwargs)
    try:
        yield
    except Exception as e:
        _finish(operation, start, e, **kwargs)
        raise
    else:
        _finish(operation, start, None, **kwargs)


@asynccontextmanager
async def trace_operation_async(operation: str, **kwargs: Any) -> AsyncIterator[None]:
    """Async variant of trace_operation."""
    start = time.perf_counter()
    logger.debug("operation_start", operation=operation, **kwargs)
    try:
        yield
    except Exception as e:
        _finish(operation, start, e, **kwargs)
        raise
    else:
        _finish(operation, start, None, **kwargs)
