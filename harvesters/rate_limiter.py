"""Polite fixed delay between requests to the dictionary site."""

import asyncio


class RateLimiter:
    """Sleeps a fixed ``delay_seconds`` after each outbound call.

    Usable as ``await limiter.wait()`` or as ``async with limiter:`` around the
    call, in which case the delay runs when the block exits.
    """

    def __init__(self, delay_seconds: float = 0.4):
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self.delay_seconds = delay_seconds
        self.wait_count = 0

    async def wait(self) -> None:
        self.wait_count += 1
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.wait()
        return False
