"""Enodia infrastructure engine.

Ingests line infrastructure (power, water, roads, rail) for an
administrative area from the Overpass API, keeps it as one layer per
category, answers "what is near this site" and tracks the selected feature.
"""

from enodia_engine.facade import InfrastructureEngine, RenderStyle

__all__ = ["InfrastructureEngine", "RenderStyle"]
