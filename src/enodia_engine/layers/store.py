"""LayerStore — owner of the infrastructure layer collection.

Exactly one layer per category exists from ``initialize`` onward.  Feature
sets are replaced, never patched; ``ingest`` builds every replacement first
and swaps them in together so readers never see a half-updated set.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence

from loguru import logger

from enodia_engine.layers.catalog import LAYER_CATALOG
from enodia_engine.layers.layer import (
    InfrastructureCategory,
    InfrastructureLayer,
    LineFeature,
)


class LayerStore:
    """Registry of infrastructure layers keyed by category."""

    def __init__(self, layers: Sequence[InfrastructureLayer]) -> None:
        self._layers: dict[InfrastructureCategory, InfrastructureLayer] = {}
        for layer in layers:
            if layer.key in self._layers:
                raise ValueError(f"Duplicate layer for category {layer.key.value}")
            self._layers[layer.key] = layer
        self._index: dict[str, LineFeature] = {}
        self._reindex()

    @classmethod
    def initialize(
        cls,
        categories: Iterable[InfrastructureCategory] = tuple(InfrastructureCategory),
        default_enabled: InfrastructureCategory | None = InfrastructureCategory.ELECTRICITY,
    ) -> LayerStore:
        """Create one empty layer per category.

        Args:
            categories: Categories to create layers for, in display order.
            default_enabled: The one category enabled from the start, or None.

        Returns:
            A new LayerStore.
        """
        layers = []
        for category in categories:
            category = InfrastructureCategory(category)
            info = LAYER_CATALOG[category]
            layers.append(
                InfrastructureLayer(
                    key=category,
                    display_name=info["display_name"],
                    color=info["color"],
                    enabled=category == default_enabled,
                    metadata=dict(info["metadata"]),
                )
            )
        return cls(layers)

    @property
    def categories(self) -> list[InfrastructureCategory]:
        return list(self._layers)

    def ingest(
        self,
        batch: Iterable[LineFeature],
        categories: Iterable[InfrastructureCategory] | None = None,
    ) -> dict[InfrastructureCategory, int]:
        """Replace layer feature sets from a batch of features.

        Args:
            batch: Classified features, in display order.
            categories: Categories to replace.  None replaces only the
                categories present in ``batch``; an explicit list also empties
                listed categories that received no features.

        Returns:
            Feature count per replaced category.

        Raises:
            KeyError: If a feature or listed category has no layer.  Nothing
                is modified in that case.
        """
        grouped: dict[InfrastructureCategory, list[LineFeature]] = {}
        if categories is not None:
            for category in categories:
                grouped[InfrastructureCategory(category)] = []
        for feature in batch:
            grouped.setdefault(feature.category, []).append(feature)

        missing = [c.value for c in grouped if c not in self._layers]
        if missing:
            raise KeyError(f"No layer for categories: {', '.join(missing)}")

        replacements = {
            category: dataclasses.replace(self._layers[category], features=tuple(features))
            for category, features in grouped.items()
        }
        self._layers.update(replacements)
        self._reindex()

        counts = {category: len(layer.features) for category, layer in replacements.items()}
        logger.info(
            "Layers replaced: "
            + ", ".join(f"{c.value}={n}" for c, n in counts.items())
        )
        return counts

    def toggle(self, category: InfrastructureCategory) -> bool:
        """Flip a layer's ``enabled`` flag and return the new value.

        Raises:
            KeyError: If the category has no layer.
        """
        category = InfrastructureCategory(category)
        layer = self._layers.get(category)
        if layer is None:
            raise KeyError(f"Layer not found: {category.value}")
        self._layers[category] = dataclasses.replace(layer, enabled=not layer.enabled)
        return not layer.enabled

    def snapshot(self) -> list[InfrastructureLayer]:
        """Return copies of all layers in display order."""
        return [
            dataclasses.replace(layer, metadata=dict(layer.metadata))
            for layer in self._layers.values()
        ]

    def get_layer(self, category: InfrastructureCategory) -> InfrastructureLayer | None:
        layer = self._layers.get(InfrastructureCategory(category))
        if layer is None:
            return None
        return dataclasses.replace(layer, metadata=dict(layer.metadata))

    def get_feature(self, feature_id: str) -> LineFeature | None:
        """Look up a feature by id across all layers."""
        return self._index.get(feature_id)

    def enabled_categories(self) -> frozenset[InfrastructureCategory]:
        return frozenset(c for c, layer in self._layers.items() if layer.enabled)

    def _reindex(self) -> None:
        self._index = {
            feature.feature_id: feature
            for layer in self._layers.values()
            for feature in layer.features
        }
