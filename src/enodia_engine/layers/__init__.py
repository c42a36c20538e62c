"""Infrastructure layer model and store.

Line features are grouped into one layer per ``InfrastructureCategory`` and
exported as GeoJSON (RFC 7946) for the map.
"""

from enodia_engine.layers.layer import (
    InfrastructureCategory,
    InfrastructureLayer,
    LineFeature,
    RawGeometryElement,
)
from enodia_engine.layers.store import LayerStore

__all__ = [
    "InfrastructureCategory",
    "InfrastructureLayer",
    "LineFeature",
    "LayerStore",
    "RawGeometryElement",
]
