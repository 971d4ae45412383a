"""Repository calls bounded by a timeout.

The data-access collaborator may answer late or never.  Calls routed
through here give up after ``timeout`` seconds and raise
PersistenceTimeoutError instead of hanging the caller.  The worker is
not cancelled; a call that timed out may still complete.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar

from rentals.domain.exceptions import (
    DomainException,
    PersistenceError,
    PersistenceTimeoutError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_default_executor: Executor | None = None


def _executor() -> Executor:
    global _default_executor
    if _default_executor is None:
        _default_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="repo-call")
    return _default_executor


def call_with_timeout(
    fn: Callable[..., T],
    *args: Any,
    timeout: float,
    executor: Executor | None = None,
    **kwargs: Any,
) -> T:
    """Run ``fn(*args, **kwargs)`` and wait at most *timeout* seconds.

    Domain errors raised by *fn* propagate unchanged; anything else is
    wrapped in PersistenceError.  Running out of time raises
    PersistenceTimeoutError.
    """
    future = (executor or _executor()).submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        raise PersistenceTimeoutError(
            f"{getattr(fn, '__name__', 'call')} did not answer within {timeout:g}s"
        ) from exc
    except DomainException:
        raise
    except Exception as exc:
        logger.error("Repository call %s failed", getattr(fn, "__name__", fn), exc_info=True)
        raise PersistenceError(str(exc)) from exc
