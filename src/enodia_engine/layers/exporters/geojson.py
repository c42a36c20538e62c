"""Export infrastructure layers to GeoJSON dicts (RFC 7946).

Coordinates are already [lng, lat] internally; tuples become lists so the
result serializes with plain ``json``.
"""

from __future__ import annotations

from enodia_engine.layers.layer import InfrastructureLayer, LineFeature


def export_geojson(layer: InfrastructureLayer) -> dict:
    """Export a layer's features as a GeoJSON FeatureCollection dict."""
    return {
        "type": "FeatureCollection",
        "features": [feature_to_geojson(f) for f in layer.features],
    }


def feature_to_geojson(feature: LineFeature) -> dict:
    """Convert a LineFeature to a GeoJSON Feature dict."""
    return {
        "type": "Feature",
        "id": feature.feature_id,
        "geometry": {
            "type": "LineString",
            "coordinates": [[lng, lat] for lng, lat in feature.coordinates],
        },
        "properties": dict(feature.properties),
    }


def layer_to_dict(layer: InfrastructureLayer) -> dict:
    """Layer display state plus its FeatureCollection."""
    return {
        "key": layer.key.value,
        "display_name": layer.display_name,
        "color": layer.color,
        "enabled": layer.enabled,
        "metadata": dict(layer.metadata),
        "feature_count": len(layer.features),
        "geojson": export_geojson(layer),
    }
