"""FeatureClassifier — tag rules mapping raw elements to categories.

Rules are evaluated in order and the first match wins.  An element tagged
both ``power=line`` and ``highway=service`` is electricity, never road, so
the order of ``CLASSIFICATION_RULES`` is part of the contract.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterable, Mapping

from loguru import logger

from enodia_engine.errors import InvalidElement
from enodia_engine.layers.layer import (
    InfrastructureCategory,
    LineFeature,
    RawGeometryElement,
)

POWER_LINE_VALUES = frozenset({"line", "minor_line"})


def _is_power_line(tags: Mapping[str, str]) -> bool:
    return tags.get("power") in POWER_LINE_VALUES


def _is_water(tags: Mapping[str, str]) -> bool:
    if tags.get("utility") == "water":
        return True
    return tags.get("man_made") == "pipeline" and (
        tags.get("pipeline") == "water" or tags.get("substance") == "water"
    )


def _is_highway(tags: Mapping[str, str]) -> bool:
    return bool(tags.get("highway"))


def _is_railway(tags: Mapping[str, str]) -> bool:
    return bool(tags.get("railway"))


CLASSIFICATION_RULES: tuple[tuple[InfrastructureCategory, Callable[[Mapping[str, str]], bool]], ...] = (
    (InfrastructureCategory.ELECTRICITY, _is_power_line),
    (InfrastructureCategory.WATER, _is_water),
    (InfrastructureCategory.ROAD, _is_highway),
    (InfrastructureCategory.RAIL, _is_railway),
)


def categorize(tags: Mapping[str, str]) -> InfrastructureCategory:
    """Return the first matching category, or OTHER."""
    for category, matches in CLASSIFICATION_RULES:
        if matches(tags):
            return category
    return InfrastructureCategory.OTHER


def synthetic_id(vertices: Iterable[tuple[float, float]]) -> str:
    """Stable id derived from a geometry, for elements with no upstream id."""
    payload = json.dumps([list(v) for v in vertices], separators=(",", ":"))
    return "geom-" + hashlib.sha1(payload.encode()).hexdigest()[:16]


def classify(element: RawGeometryElement) -> LineFeature:
    """Convert one raw element into a LineFeature.

    Raises:
        InvalidElement: If the element has fewer than 2 vertices.
    """
    if len(element.vertices) < 2:
        raise InvalidElement(
            element.element_id,
            f"polyline needs at least 2 vertices, got {len(element.vertices)}",
        )

    category = categorize(element.tags)
    if element.element_id is None:
        feature_id = synthetic_id(element.vertices)
    else:
        feature_id = str(element.element_id)

    properties = dict(element.tags)
    properties["id"] = element.element_id if element.element_id is not None else feature_id
    properties["category"] = category.value

    return LineFeature(
        feature_id=feature_id,
        category=category,
        coordinates=tuple(element.vertices),
        properties=properties,
    )


def classify_batch(elements: Iterable[RawGeometryElement]) -> tuple[list[LineFeature], int]:
    """Classify a batch, skipping invalid and duplicate elements.

    Returns:
        (features, skipped) where ``skipped`` counts rejected elements.
        A repeated feature id keeps its first occurrence.
    """
    features: list[LineFeature] = []
    seen: set[str] = set()
    skipped = 0
    for element in elements:
        try:
            feature = classify(element)
        except InvalidElement as e:
            logger.warning(f"Skipping element: {e}")
            skipped += 1
            continue
        if feature.feature_id in seen:
            logger.debug(f"Duplicate element {feature.feature_id} ignored")
            skipped += 1
            continue
        seen.add(feature.feature_id)
        features.append(feature)
    return features, skipped
