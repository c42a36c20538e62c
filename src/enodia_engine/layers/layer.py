"""Infrastructure data model: categories, raw elements, line features, layers.

All coordinates are stored in GeoJSON convention: (lng, lat).  The swap from
the upstream ``{lat, lon}`` vertex objects happens exactly once, in
``RawGeometryElement.from_overpass``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from enodia_engine.errors import InvalidElement

Coordinate = tuple[float, float]  # (lng, lat)


class InfrastructureCategory(str, Enum):
    """Closed set of infrastructure categories, in display order."""

    ELECTRICITY = "electricity"
    WATER = "water"
    ROAD = "road"
    RAIL = "rail"
    OTHER = "other"


@dataclass(frozen=True)
class RawGeometryElement:
    """A way as returned by the geodata query service.

    Attributes:
        element_id: Upstream identifier, or None when the record carried none.
        vertices: Ordered (lng, lat) pairs.  Fewer than 2 makes the element
            invalid; it is rejected by the classifier, not here.
        tags: Free-form upstream tags.
        element_type: Upstream element type ("way" for line geometry).
    """

    element_id: int | str | None
    vertices: tuple[Coordinate, ...]
    tags: Mapping[str, str] = field(default_factory=dict, compare=False)
    element_type: str = "way"

    @classmethod
    def from_overpass(cls, element: Mapping[str, Any]) -> RawGeometryElement:
        """Build from an Overpass ``out geom`` element.

        Vertices without both ``lat`` and ``lon`` are dropped.

        Raises:
            InvalidElement: If a vertex value is not numeric, or the
                geometry or tags have the wrong shape.
        """
        try:
            vertices = tuple(
                (float(pt["lon"]), float(pt["lat"]))
                for pt in element.get("geometry") or []
                if "lat" in pt and "lon" in pt
            )
            tags = {str(k): str(v) for k, v in (element.get("tags") or {}).items()}
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidElement(element.get("id"), f"malformed element: {e}") from e
        return cls(
            element_id=element.get("id"),
            vertices=vertices,
            tags=tags,
            element_type=str(element.get("type", "way")),
        )


@dataclass(frozen=True)
class LineFeature:
    """A single classified polyline.

    Attributes:
        feature_id: Stable id, unique within one ingestion batch.
        category: Resolved infrastructure category.
        coordinates: Polyline as (lng, lat) pairs, order preserved.
        properties: Original tags plus ``id`` and ``category``.  Read-only.
    """

    feature_id: str
    category: InfrastructureCategory
    coordinates: tuple[Coordinate, ...]
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


@dataclass
class InfrastructureLayer:
    """All features of one category plus display state.

    Attributes:
        key: The category this layer holds.
        display_name: Human-readable name.
        color: Hex color used for normal rendering.
        features: Features, replaced wholesale on ingestion.
        enabled: Whether the layer is rendered and considered for proximity.
        metadata: Arbitrary key-value metadata (e.g. data source).
    """

    key: InfrastructureCategory
    display_name: str
    color: str
    features: tuple[LineFeature, ...] = ()
    enabled: bool = False
    metadata: dict = field(default_factory=dict)
