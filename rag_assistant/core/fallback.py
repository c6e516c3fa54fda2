"""Best-effort degradation helper shared by the pipeline stages."""

import inspect
import logging
from typing import Awaitable, Callable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_error(exc: BaseException) -> str:
    """Short human-readable cause for an exception."""
    return str(exc) or exc.__class__.__name__


async def with_fallback(
    stage: str,
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[Exception], Union[T, Awaitable[T]]],
) -> T:
    """Run ``primary``; on any exception return ``fallback(exc)``.

    One call is one degradation step, so a chain such as
    structured -> plain text -> static string reads as nested calls.
    The fallback may return a value or an awaitable.

    Args:
        stage: Stage name used in the warning log
        primary: Zero-argument coroutine function
        fallback: Called with the caught exception

    Returns:
        Result of ``primary`` or of ``fallback``
    """
    try:
        return await primary()
    except Exception as e:
        logger.warning(f"{stage} failed, degrading: {describe_error(e)}")
        result = fallback(e)
        if inspect.isawaitable(result):
            result = await result
        return result
