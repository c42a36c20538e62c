"""Ingestion sequence: resolve area -> fetch ways -> classify -> store.

``InfrastructureIngestor.refresh`` is the ingestion boundary.  Upstream
errors stop here and come back as an ``IngestionResult``; they are never
raised to the caller.  Overlapping refreshes are guarded by ``LatestWins``
so only the newest one writes to the LayerStore.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from loguru import logger

from enodia_engine.errors import AreaNotFound, StaleResponse, UpstreamQueryFailed
from enodia_engine.ingest.classifier import classify_batch
from enodia_engine.ingest.overpass import TAG_FILTERS, OverpassClient
from enodia_engine.latest import LatestWins
from enodia_engine.layers.layer import LineFeature
from enodia_engine.layers.store import LayerStore

T = TypeVar("T")

# Statuses worth another attempt (rate limit, gateway overload).
RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})

AREA_UNAVAILABLE_MESSAGE = "Infrastructure data unavailable for this area"


class IngestionOutcome(str, Enum):
    OK = "ok"
    AREA_NOT_FOUND = "area_not_found"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass
class IngestionResult:
    """What happened to one ``refresh`` call."""

    outcome: IngestionOutcome
    generation: int
    area_name: str
    admin_level: int
    counts: dict[str, int] = field(default_factory=dict)
    skipped: int = 0
    status: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is IngestionOutcome.OK

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "generation": self.generation,
            "area_name": self.area_name,
            "admin_level": self.admin_level,
            "counts": dict(self.counts),
            "skipped": self.skipped,
            "status": self.status,
            "message": self.message,
        }


class InfrastructureIngestor:
    """Populates a LayerStore from the Overpass API.

    Args:
        client: The geodata query client.
        store: Destination store; written only through ``LayerStore.ingest``.
        max_retries: Extra attempts per request on retryable failures.
        retry_backoff: Initial sleep between attempts, doubled each time.
    """

    def __init__(
        self,
        client: OverpassClient,
        store: LayerStore,
        *,
        max_retries: int = 2,
        retry_backoff: float = 2.0,
    ) -> None:
        self._client = client
        self._store = store
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self._guard: LatestWins[tuple[list[LineFeature], int]] = LatestWins()

    @property
    def generation(self) -> int:
        return self._guard.generation

    def cancel(self) -> None:
        """Abandon any in-flight refresh; its result will be discarded."""
        self._guard.invalidate()

    async def refresh(self, area_name: str, admin_level: int) -> IngestionResult:
        """Run one ingestion and apply it if no newer one started meanwhile."""
        generation = self._guard.generation + 1
        result = IngestionResult(
            outcome=IngestionOutcome.OK,
            generation=generation,
            area_name=area_name,
            admin_level=admin_level,
        )
        logger.info(f"Ingestion #{generation} started for {area_name!r} (admin_level={admin_level})")

        try:
            features, skipped = await self._guard.run(
                lambda: self._download(area_name, admin_level)
            )
        except StaleResponse as e:
            logger.debug(f"Ingestion #{generation} discarded: {e}")
            result.outcome = IngestionOutcome.SUPERSEDED
            return result
        except AreaNotFound as e:
            logger.warning(f"Ingestion #{generation}: {e}")
            result.outcome = IngestionOutcome.AREA_NOT_FOUND
            result.message = AREA_UNAVAILABLE_MESSAGE
            return result
        except UpstreamQueryFailed as e:
            logger.warning(f"Ingestion #{generation} failed: {e}")
            result.outcome = IngestionOutcome.FAILED
            result.status = e.status
            result.message = e.body
            return result

        counts = self._store.ingest(features, categories=self._store.categories)
        result.counts = {category.value: n for category, n in counts.items()}
        result.skipped = skipped
        logger.info(
            f"Ingestion #{generation} applied: {len(features)} features, {skipped} skipped"
        )
        return result

    async def _download(self, area_name: str, admin_level: int) -> tuple[list[LineFeature], int]:
        area = await self._with_retries(
            lambda: self._client.resolve_area(area_name, admin_level)
        )
        categories = [c for c in self._store.categories if c in TAG_FILTERS]
        elements = await self._with_retries(
            lambda: self._client.fetch_elements(area, categories)
        )
        return classify_batch(elements)

    async def _with_retries(self, call: Callable[[], Awaitable[T]]) -> T:
        delay = self.retry_backoff
        for attempt in range(self.max_retries + 1):
            try:
                return await call()
            except UpstreamQueryFailed as e:
                retryable = e.status is None or e.status in RETRYABLE_STATUSES
                if not retryable or attempt >= self.max_retries:
                    raise
                logger.warning(
                    f"Overpass attempt {attempt + 1} failed (status={e.status}). "
                    f"Retrying in {delay:.1f}s."
                )
                await asyncio.sleep(delay)
                delay *= 2
        raise RuntimeError(f"No attempts made (max_retries={self.max_retries})")
