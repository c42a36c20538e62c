"""GeoJSON export for infrastructure layers."""
