"""
Cancellation and push-style subscription helpers for async streams.

Discovery, synchronization and signing are exposed as async generators
that take a ``CancellationToken``. ``subscribe`` drives such a stream in a
background task and forwards its items to callbacks, which is how UI-style
consumers observe them.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")


class CancellationToken:
    """
    Cooperative cancellation flag.

    Streams check the flag after every network call. In-flight requests
    still complete, but their results are discarded.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class Subscription(Generic[T]):
    """Handle on a stream driven in the background by ``subscribe``."""

    def __init__(
        self,
        name: str,
        stream_factory: Callable[[CancellationToken], AsyncIterator[T]],
        on_next: Callable[[T], None],
        on_error: Callable[[BaseException], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ):
        self.name = name
        self.token = CancellationToken()
        self._stream_factory = stream_factory
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(self._run())

    @property
    def closed(self) -> bool:
        return self.token.cancelled or self._task.done()

    async def _run(self) -> None:
        try:
            async for item in self._stream_factory(self.token):
                if self.token.cancelled:
                    break
                self._on_next(item)
        except Exception as e:
            if self.token.cancelled:
                logger.debug(f"{self.name} failed after unsubscribe, dropping error: {e}")
                return
            logger.error(f"{self.name} failed: {e}")
            if self._on_error is None:
                raise
            self._on_error(e)
            return

        if self.token.cancelled:
            logger.debug(f"{self.name} unsubscribed")
        elif self._on_complete is not None:
            self._on_complete()

    def unsubscribe(self) -> None:
        """Stop forwarding items; no further network calls are issued."""
        self.token.cancel()

    async def wait(self) -> None:
        """Wait until the stream has finished, failed or stopped after unsubscribe."""
        await asyncio.shield(self._task)


def subscribe(
    name: str,
    stream_factory: Callable[[CancellationToken], AsyncIterator[T]],
    on_next: Callable[[T], None],
    on_error: Callable[[BaseException], None] | None = None,
    on_complete: Callable[[], None] | None = None,
) -> Subscription[T]:
    """
    Drive ``stream_factory(token)`` in a background task.

    Must be called from a running event loop. An error is terminal: the
    subscription ends after a single ``on_error`` call.
    """
    return Subscription(name, stream_factory, on_next, on_error, on_complete)
