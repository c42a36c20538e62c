"""LatestWins — a generation counter guarding overlapping async operations.

Every ``run`` takes a new generation.  When the awaited operation finishes,
its result is only handed back if no newer ``run`` (or ``invalidate``)
happened in the meantime; otherwise ``StaleResponse`` is raised and the
caller drops the result.  A slow early request can therefore never
overwrite the outcome of a later one.

With ``debounce > 0`` the operation is not even started until the quiet
period has passed without a newer call, which is what interactive search
boxes want.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from enodia_engine.errors import StaleResponse

T = TypeVar("T")


class LatestWins(Generic[T]):
    """Apply only the result of the most recently started operation."""

    def __init__(self, debounce: float = 0.0) -> None:
        self.debounce = debounce
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new generation and return its number."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def invalidate(self) -> None:
        """Abandon whatever is in flight (teardown, area change)."""
        self._generation += 1

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await ``operation()`` and return its result if still current.

        An exception from a superseded operation is replaced by
        ``StaleResponse`` as well; only the current generation's errors reach
        the caller.

        Raises:
            StaleResponse: If a newer generation began before completion.
        """
        generation = self.begin()
        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
            if not self.is_current(generation):
                raise StaleResponse(generation, self._generation)
        try:
            result = await operation()
        except Exception as e:
            if not self.is_current(generation):
                raise StaleResponse(generation, self._generation) from e
            raise
        if not self.is_current(generation):
            raise StaleResponse(generation, self._generation)
        return result
