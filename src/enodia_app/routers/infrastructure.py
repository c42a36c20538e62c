"""Infrastructure API — layers, ingestion refresh, selection, proximity.

Thin HTTP wrapper over ``InfrastructureEngine`` for the map frontend.  The
engine lives on ``app.state.infrastructure``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from enodia_engine.facade import InfrastructureEngine
from enodia_engine.ingest.pipeline import IngestionOutcome
from enodia_engine.layers.exporters.geojson import export_geojson, feature_to_geojson, layer_to_dict
from enodia_engine.layers.layer import InfrastructureCategory
from enodia_engine.selection.state import SelectionChange
from enodia_engine.spatial.proximity import Site

router = APIRouter(prefix="/api/infrastructure", tags=["infrastructure"])

_OUTCOME_STATUS = {
    IngestionOutcome.OK: 200,
    IngestionOutcome.SUPERSEDED: 200,
    IngestionOutcome.AREA_NOT_FOUND: 404,
    IngestionOutcome.FAILED: 502,
}


class RefreshRequest(BaseModel):
    """Re-ingest an administrative area (defaults to the configured one)."""
    area_name: Optional[str] = None
    admin_level: Optional[int] = None


class SiteRequest(BaseModel):
    """A site picked in the data explorer."""
    id: Optional[str] = None
    lat: float
    lng: float
    name: str = ""


def _get_engine(request: Request) -> InfrastructureEngine:
    engine = getattr(request.app.state, "infrastructure", None)
    if engine is None:
        raise HTTPException(503, "Infrastructure engine not available")
    return engine


def _change_to_dict(change: SelectionChange) -> dict:
    return {
        "trigger": change.trigger,
        "changed": change.changed,
        "affected_ids": sorted(change.affected_ids),
        "selection": change.current.to_dict(),
    }


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

@router.get("/layers")
async def get_layers(request: Request):
    """All layers with display state and GeoJSON, in display order."""
    engine = _get_engine(request)
    return [layer_to_dict(layer) for layer in engine.get_layers()]


@router.get("/layers/{category}")
async def get_layer_geojson(category: InfrastructureCategory, request: Request):
    """One layer as a GeoJSON FeatureCollection."""
    layer = _get_engine(request).store.get_layer(category)
    if layer is None:
        raise HTTPException(404, f"Layer not found: {category.value}")
    return export_geojson(layer)


@router.post("/layers/{category}/toggle")
async def toggle_layer(category: InfrastructureCategory, request: Request):
    engine = _get_engine(request)
    try:
        enabled = engine.toggle_layer(category)
    except KeyError:
        raise HTTPException(404, f"Layer not found: {category.value}")
    return {"key": category.value, "enabled": enabled}


@router.post("/refresh")
async def refresh(request: Request, body: Optional[RefreshRequest] = None):
    """Run one ingestion.  A newer refresh supersedes an in-flight one."""
    body = body or RefreshRequest()
    result = await _get_engine(request).refresh(body.area_name, body.admin_level)
    return JSONResponse(result.to_dict(), status_code=_OUTCOME_STATUS[result.outcome])


@router.get("/status")
async def ingestion_status(request: Request):
    """Outcome of the latest applied or failed ingestion, if any."""
    engine = _get_engine(request)
    result = engine.last_result
    return {
        "area_name": engine.area_name,
        "admin_level": engine.admin_level,
        "last_result": result.to_dict() if result else None,
    }


# ---------------------------------------------------------------------------
# Features and selection
# ---------------------------------------------------------------------------

@router.get("/features/{feature_id}")
async def get_feature(feature_id: str, request: Request):
    feature = _get_engine(request).store.get_feature(feature_id)
    if feature is None:
        raise HTTPException(404, f"Feature not found: {feature_id}")
    return feature_to_geojson(feature)


@router.get("/selection")
async def get_selection(request: Request):
    return _get_engine(request).selection.state.to_dict()


@router.post("/selection/features/{feature_id}")
async def click_feature(feature_id: str, request: Request):
    """Pointer click on a line: select, or deselect if already selected."""
    try:
        change = _get_engine(request).on_feature_click(feature_id)
    except KeyError:
        raise HTTPException(404, f"Feature not found: {feature_id}")
    return _change_to_dict(change)


@router.post("/selection/clear")
async def click_background(request: Request):
    """Pointer click on the map background."""
    return _change_to_dict(_get_engine(request).on_map_background_click())


@router.get("/selection/style/{feature_id}")
async def get_selection_style(feature_id: str, request: Request):
    try:
        style = _get_engine(request).get_selection_style(feature_id)
    except KeyError:
        raise HTTPException(404, f"Feature not found: {feature_id}")
    return style.to_dict()


# ---------------------------------------------------------------------------
# Sites and proximity
# ---------------------------------------------------------------------------

@router.post("/sites/select")
async def select_site(body: SiteRequest, request: Request):
    """Focus a site.  Resets feature selection and recomputes related lines."""
    engine = _get_engine(request)
    site = Site(site_id=body.id, lat=body.lat, lng=body.lng, name=body.name)
    change = engine.select_site(site)
    related = engine.related_feature_ids()
    return {
        **_change_to_dict(change),
        "related": {c.value: sorted(ids) for c, ids in related.items()},
    }


@router.delete("/sites/select")
async def clear_site(request: Request):
    return _change_to_dict(_get_engine(request).select_site(None))


@router.get("/nearby")
async def get_nearby(
    request: Request,
    lat: float = Query(..., description="Site latitude", ge=-90, le=90),
    lng: float = Query(..., description="Site longitude", ge=-180, le=180),
    threshold: Optional[float] = Query(None, description="Distance threshold in meters", ge=0),
):
    """Features of enabled layers within ``threshold`` meters of a point."""
    engine = _get_engine(request)
    matches = engine.get_nearby(Site(site_id=None, lat=lat, lng=lng), threshold)
    return {
        category.value: [feature_to_geojson(f) for f in features]
        for category, features in matches.items()
    }
