"""Display metadata for each infrastructure layer."""

from __future__ import annotations

from enodia_engine.layers.layer import InfrastructureCategory

# Highlight color for the selected feature, shared by every layer.
SELECTED_COLOR = "#d9a3ff"

LAYER_CATALOG: dict[InfrastructureCategory, dict] = {
    InfrastructureCategory.ELECTRICITY: {
        "display_name": "Electricity",
        "color": "#f6c23e",
        "metadata": {"source": "OSM power"},
    },
    InfrastructureCategory.WATER: {
        "display_name": "Water",
        "color": "#36b9cc",
        "metadata": {"source": "OSM"},
    },
    InfrastructureCategory.ROAD: {
        "display_name": "Roads",
        "color": "#38a169",
        "metadata": {"source": "OSM highways"},
    },
    InfrastructureCategory.RAIL: {
        "display_name": "Rail",
        "color": "#ff9999",
        "metadata": {"source": "OSM rail"},
    },
    InfrastructureCategory.OTHER: {
        "display_name": "Other",
        "color": "#a0aec0",
        "metadata": {"source": "OSM"},
    },
}
