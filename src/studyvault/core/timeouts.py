"""Caller-side deadline for store operations.

Store operations cannot be cancelled once issued. A caller that needs a
deadline races the operation against a timer; on expiry the operation keeps
running in the background and the caller gets ``OperationTimeoutError``.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from studyvault.core.exceptions import OperationTimeoutError
from studyvault.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def wait_with_timeout(operation: Awaitable[T], timeout: float) -> T:
    """Wait for a store operation for at most ``timeout`` seconds.

    Args:
        operation: Awaitable returned by a store method.
        timeout: Seconds to wait before giving up.

    Returns:
        The operation's result.

    Raises:
        OperationTimeoutError: If the deadline passes first. The operation is
            shielded and may still complete afterwards.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Store operation timed out, outcome unknown", timeout=timeout)
        raise OperationTimeoutError(
            f"Operation did not finish within {timeout}s; outcome unknown",
            timeout=timeout,
        ) from e
