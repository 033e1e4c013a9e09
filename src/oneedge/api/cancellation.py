"""Cooperative cancellation for in-flight requests.

A CancelToken is created per logical request and shared between the caller
that may abort it and the code awaiting the network. race() is the
transport-level half: it stops waiting on a pending read the moment the
token fires instead of waiting for the next byte to arrive.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import RequestCancelledError

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError()


async def race(awaitable: Awaitable[T], token: CancelToken | None) -> T:
    """Await `awaitable` unless `token` fires first.

    Args:
        awaitable: The operation to wait for
        token: Optional cancel token; None waits unconditionally

    Returns:
        The awaitable's result

    Raises:
        RequestCancelledError: If the token fired before the awaitable finished
    """
    if token is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    if token.cancelled:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise RequestCancelledError()

    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise RequestCancelledError()
