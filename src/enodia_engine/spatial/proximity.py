"""Proximity between a site and infrastructure line features.

Distances use a local equirectangular projection centred on the site
(meters east/north of it), then exact point-to-segment distance.  Within a
county-sized area the error against a geodesic is well under a meter per
kilometer.

Everything here is a pure function of its arguments; callers recompute on
every change to the site or to the enabled-layer set.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from enodia_engine.layers.layer import (
    Coordinate,
    InfrastructureCategory,
    InfrastructureLayer,
    LineFeature,
)

METERS_PER_DEG_LAT = 111_320.0
DEFAULT_THRESHOLD_M = 500.0


@dataclass(frozen=True)
class Site:
    """A point of interest supplied by the data explorer.  Only lat/lng are used."""

    site_id: Any
    lat: float
    lng: float
    name: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Site:
        """Build from a ``{id, lat, lng, name, ...}`` record (``lon`` accepted for ``lng``)."""
        lng = data["lng"] if "lng" in data else data["lon"]
        known = {"id", "lat", "lng", "lon", "name"}
        return cls(
            site_id=data.get("id"),
            lat=float(data["lat"]),
            lng=float(lng),
            name=str(data.get("name") or ""),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True)
class ProximityRelation:
    """Features of one layer within the threshold of one site."""

    site_id: Any
    layer_key: InfrastructureCategory
    matching_feature_ids: frozenset[str]


def distance_to_line_m(lat: float, lng: float, coordinates: Sequence[Coordinate]) -> float:
    """Minimum distance in meters from (lat, lng) to a (lng, lat) polyline."""
    pts = np.asarray(coordinates, dtype=float).reshape(-1, 2)
    if pts.shape[0] == 0:
        return math.inf

    m_per_deg_lng = METERS_PER_DEG_LAT * math.cos(math.radians(lat))
    x = (pts[:, 0] - lng) * m_per_deg_lng
    y = (pts[:, 1] - lat) * METERS_PER_DEG_LAT
    if pts.shape[0] == 1:
        return float(math.hypot(x[0], y[0]))

    ax, ay = x[:-1], y[:-1]
    dx, dy = x[1:] - ax, y[1:] - ay
    seg_len2 = dx * dx + dy * dy
    # Parameter of the site's (origin) projection onto each segment.
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(seg_len2 > 0, -(ax * dx + ay * dy) / seg_len2, 0.0)
    t = np.clip(t, 0.0, 1.0)
    return float(np.min(np.hypot(ax + t * dx, ay + t * dy)))


def nearby(
    site: Site | None,
    layers: Iterable[InfrastructureLayer],
    threshold_m: float = DEFAULT_THRESHOLD_M,
) -> dict[InfrastructureCategory, list[LineFeature]]:
    """Features of enabled layers within ``threshold_m`` of the site.

    Returns:
        Category -> matching features, in layer order.  Categories with no
        match are omitted; no site or no enabled layer gives ``{}``.

    Raises:
        ValueError: If ``threshold_m`` is negative.
    """
    if threshold_m < 0:
        raise ValueError(f"threshold_m must be >= 0, got {threshold_m}")
    if site is None:
        return {}

    related: dict[InfrastructureCategory, list[LineFeature]] = {}
    for layer in layers:
        if not layer.enabled:
            continue
        matches = [
            f for f in layer.features
            if distance_to_line_m(site.lat, site.lng, f.coordinates) <= threshold_m
        ]
        if matches:
            related[layer.key] = matches
    return related


def relations(
    site: Site | None,
    layers: Iterable[InfrastructureLayer],
    threshold_m: float = DEFAULT_THRESHOLD_M,
) -> list[ProximityRelation]:
    """``nearby`` reduced to id sets, one relation per matching layer."""
    if site is None:
        return []
    return [
        ProximityRelation(
            site_id=site.site_id,
            layer_key=category,
            matching_feature_ids=frozenset(f.feature_id for f in features),
        )
        for category, features in nearby(site, layers, threshold_m).items()
    ]
