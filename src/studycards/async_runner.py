"""Run the async pipeline and generation calls from sync callers."""

from __future__ import annotations

import asyncio
import threading
from queue import Queue
from typing import TYPE_CHECKING, Any

from studycards.exceptions import AsyncExecutionError, PackageError

if TYPE_CHECKING:
    from collections.abc import Coroutine


def _raise_from_result(result: BaseException) -> None:
    """Re-raise a coroutine failure for a sync caller.

    Package errors keep their type so callers can tell a cancellation from a
    load or decode failure; anything else is wrapped.

    Raises:
        PackageError: When the coroutine raised a package error.
        AsyncExecutionError: For any other exception.
    """
    if isinstance(result, PackageError):
        raise result
    raise AsyncExecutionError(result=result) from result


def _run_in_background_thread[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a dedicated thread with its own event loop.

    Args:
        coro: The coroutine to run.

    Returns:
        The result of the coroutine.
    """
    output: Queue[T | BaseException] = Queue(maxsize=1)

    def _runner() -> None:
        try:
            output.put(asyncio.run(coro))
        except BaseException as exc:
            output.put(exc)

    thread = threading.Thread(target=_runner, name="studycards-async", daemon=True)
    thread.start()
    thread.join()

    result = output.get()
    if isinstance(result, BaseException):
        _raise_from_result(result)
    return result  # type: ignore[return-value]


def run_async[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from both sync and async contexts.

    Without a running loop the coroutine runs on a fresh loop in this thread.
    Inside a running loop it is handed to a dedicated thread with its own loop,
    so blocking here does not re-enter the caller's loop.

    Args:
        coro: The coroutine to run.

    Raises:
        AsyncExecutionError: If the coroutine raises a non-package exception.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        try:
            return asyncio.run(coro)
        except PackageError:
            raise
        except Exception as exc:
            raise AsyncExecutionError(result=exc) from exc

    return _run_in_background_thread(coro)
