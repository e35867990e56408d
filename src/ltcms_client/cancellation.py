"""Cooperative cancellation tokens.

A ``CancellationToken`` is passed by keyword (``cancel=``) into every
suspending call. Cancelling it aborts the in-flight request and any pending
retry delay; already completed calls are unaffected.
"""

import asyncio


class CancellationToken:
    """One-shot cancellation flag that coroutines can await."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for delay seconds unless cancelled first.

        Returns:
            True if the sleep was cut short by cancellation, False otherwise
        """
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True
