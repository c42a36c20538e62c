"""InfrastructureEngine — the interface the map surface talks to.

Wires LayerStore, InfrastructureIngestor, SelectionStateMachine and the
proximity functions together.  All methods except ``refresh`` are
synchronous and run on the caller's event loop thread; ``refresh`` suspends
only while waiting on the network, and its result is applied in one
synchronous step.

The engine holds no rendering handles.  The map keeps its own
``feature_id -> handle`` mapping and asks ``get_selection_style`` for the
ids listed in each ``SelectionChange.affected_ids``.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass

from loguru import logger

from enodia_engine.ingest.overpass import OverpassClient
from enodia_engine.ingest.pipeline import InfrastructureIngestor, IngestionResult
from enodia_engine.layers.catalog import SELECTED_COLOR
from enodia_engine.layers.layer import InfrastructureCategory, InfrastructureLayer, LineFeature
from enodia_engine.layers.store import LayerStore
from enodia_engine.selection.state import SelectionChange, SelectionStateMachine
from enodia_engine.spatial.proximity import DEFAULT_THRESHOLD_M, Site, nearby

NORMAL_WEIGHT = 4
NORMAL_OPACITY = 0.8
SELECTED_WEIGHT = 6
SELECTED_OPACITY = 1.0
DIMMED_OPACITY = 0.2


@dataclass(frozen=True)
class RenderStyle:
    """Style descriptor for one feature."""

    emphasized: bool
    dimmed: bool
    color: str
    weight: int
    opacity: float

    def to_dict(self) -> dict:
        return {
            "emphasized": self.emphasized,
            "dimmed": self.dimmed,
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
        }


class InfrastructureEngine:
    """Ingestion, layers, proximity and selection behind one object.

    Args:
        store: The layer store.
        ingestor: Ingestion pipeline writing into ``store``.
        area_name: Default administrative area for ``refresh``.
        admin_level: Admin level of the default area.
        proximity_threshold_m: Threshold for the cached site relations.
    """

    def __init__(
        self,
        store: LayerStore,
        ingestor: InfrastructureIngestor,
        *,
        area_name: str,
        admin_level: int,
        proximity_threshold_m: float = DEFAULT_THRESHOLD_M,
    ) -> None:
        self.store = store
        self.selection = SelectionStateMachine()
        self.area_name = area_name
        self.admin_level = admin_level
        self.proximity_threshold_m = proximity_threshold_m
        self._ingestor = ingestor
        self._site: Site | None = None
        self._related: dict[InfrastructureCategory, frozenset[str]] = {}
        self._refresh_tasks: set[asyncio.Task] = set()
        self.last_result: IngestionResult | None = None

    @classmethod
    def create(
        cls,
        client: OverpassClient,
        *,
        area_name: str,
        admin_level: int,
        default_enabled: InfrastructureCategory | None = InfrastructureCategory.ELECTRICITY,
        proximity_threshold_m: float = DEFAULT_THRESHOLD_M,
        max_retries: int = 2,
        retry_backoff: float = 2.0,
    ) -> InfrastructureEngine:
        """Build an engine with a fresh store (one empty layer per category)."""
        store = LayerStore.initialize(default_enabled=default_enabled)
        ingestor = InfrastructureIngestor(
            client, store, max_retries=max_retries, retry_backoff=retry_backoff,
        )
        return cls(
            store,
            ingestor,
            area_name=area_name,
            admin_level=admin_level,
            proximity_threshold_m=proximity_threshold_m,
        )

    # ------------------------------------------------------------------
    # Map surface interface
    # ------------------------------------------------------------------

    def get_layers(self) -> list[InfrastructureLayer]:
        return self.store.snapshot()

    def on_feature_click(self, feature_id: str) -> SelectionChange:
        """Toggle selection of a feature.

        Raises:
            KeyError: If no layer holds ``feature_id``.
        """
        return self.selection.click(self._require_feature(feature_id))

    def on_map_background_click(self) -> SelectionChange:
        return self.selection.click_background()

    def get_selection_style(self, feature_id: str) -> RenderStyle:
        """Render style for one feature under the current selection and site.

        Raises:
            KeyError: If no layer holds ``feature_id``.
        """
        feature = self._require_feature(feature_id)
        if self.selection.style_for(feature_id).emphasized:
            return RenderStyle(
                emphasized=True,
                dimmed=False,
                color=SELECTED_COLOR,
                weight=SELECTED_WEIGHT,
                opacity=SELECTED_OPACITY,
            )
        layer = self.store.get_layer(feature.category)
        related = self._related.get(feature.category)
        dimmed = related is not None and feature_id not in related
        return RenderStyle(
            emphasized=False,
            dimmed=dimmed,
            color=layer.color,
            weight=NORMAL_WEIGHT,
            opacity=DIMMED_OPACITY if dimmed else NORMAL_OPACITY,
        )

    def get_nearby(
        self,
        site: Site | None,
        threshold_m: float | None = None,
    ) -> dict[InfrastructureCategory, list[LineFeature]]:
        if threshold_m is None:
            threshold_m = self.proximity_threshold_m
        return nearby(site, self.store.snapshot(), threshold_m)

    # ------------------------------------------------------------------
    # Site and layer controls
    # ------------------------------------------------------------------

    @property
    def selected_site(self) -> Site | None:
        return self._site

    def select_site(self, site: Site | None) -> SelectionChange:
        """Focus a site from the data explorer.  Clears feature selection."""
        self._site = site
        self._recompute_related()
        return self.selection.reset()

    def toggle_layer(self, category: InfrastructureCategory) -> bool:
        enabled = self.store.toggle(category)
        self._recompute_related()
        return enabled

    def related_feature_ids(self) -> dict[InfrastructureCategory, frozenset[str]]:
        """Ids near the selected site per enabled layer, as of the last change."""
        return dict(self._related)

    def describe(self, feature_id: str) -> dict:
        """Property mapping shown in the feature popup.

        Raises:
            KeyError: If no layer holds ``feature_id``.
        """
        return dict(self._require_feature(feature_id).properties)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def refresh(
        self,
        area_name: str | None = None,
        admin_level: int | None = None,
    ) -> IngestionResult:
        """Ingest an area (default: the current one).

        A newer ``refresh`` supersedes this one.  Upstream failures come back
        as the result's outcome and leave existing layers untouched.
        """
        area_name = area_name or self.area_name
        admin_level = admin_level if admin_level is not None else self.admin_level
        if (area_name, admin_level) != (self.area_name, self.admin_level):
            self.selection.reset()

        result = await self._ingestor.refresh(area_name, admin_level)
        if result.ok:
            self.area_name = area_name
            self.admin_level = admin_level
            self.selection.reset()
            self._recompute_related()
        if result.generation == self._ingestor.generation:
            self.last_result = result
        return result

    def schedule_refresh(
        self,
        area_name: str | None = None,
        admin_level: int | None = None,
    ) -> asyncio.Task:
        """Start ``refresh`` in the background on the running loop."""
        task = asyncio.create_task(self.refresh(area_name, admin_level))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)
        return task

    async def close(self) -> None:
        """Abandon in-flight ingestion.  Layers and selection stay readable."""
        self._ingestor.cancel()
        pending = [task for task in self._refresh_tasks if not task.done()]
        self._refresh_tasks.clear()
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Infrastructure engine closed")

    # ------------------------------------------------------------------

    def _require_feature(self, feature_id: str) -> LineFeature:
        feature = self.store.get_feature(str(feature_id))
        if feature is None:
            raise KeyError(f"Feature not found: {feature_id}")
        return feature

    def _recompute_related(self) -> None:
        self._related = {
            category: frozenset(f.feature_id for f in features)
            for category, features in nearby(
                self._site, self.store.snapshot(), self.proximity_threshold_m,
            ).items()
        }
