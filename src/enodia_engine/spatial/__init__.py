"""Spatial queries over infrastructure layers."""

from enodia_engine.spatial.proximity import (
    DEFAULT_THRESHOLD_M,
    ProximityRelation,
    Site,
    distance_to_line_m,
    nearby,
    relations,
)

__all__ = [
    "DEFAULT_THRESHOLD_M",
    "ProximityRelation",
    "Site",
    "distance_to_line_m",
    "nearby",
    "relations",
]
