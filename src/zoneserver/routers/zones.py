"""Zone editing API for the map drawing client.

The drawing widget posts its add / modify / delete events here; the session
tracks them until a save sends them to the WFS server in one transaction.
"""

from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from pydantic import BaseModel, Field

from zonesync import (
    LoadError,
    NoChangesError,
    SaveError,
    SaveInProgressError,
    SyncClient,
    Zone,
    ZoneSession,
)
from zonesync.exporters.geojson import export_geojson

router = APIRouter(prefix="/api/zones", tags=["zones"])


def get_session(request: Request) -> ZoneSession:
    """The edit session owned by the application."""
    return request.app.state.zone_session


def get_sync_client(request: Request) -> SyncClient:
    return request.app.state.sync_client


# ==================
# Request/Response Models
# ==================

class GeometryModel(BaseModel):
    """GeoJSON geometry."""
    type: str
    coordinates: Any


class ZoneFeature(BaseModel):
    """GeoJSON Feature sent by the drawing widget."""
    type: str = "Feature"
    id: Optional[Union[str, int]] = None
    geometry: GeometryModel
    properties: dict[str, Any] = Field(default_factory=dict)


class LoadRequest(BaseModel):
    """Optional explicit GetFeature URL."""
    url: Optional[str] = None


def _to_zone(feature: ZoneFeature, zone_id: Optional[str] = None) -> Zone:
    zone_id = zone_id if zone_id is not None else feature.id
    if zone_id is None or str(zone_id) == "":
        raise HTTPException(status_code=400, detail="Feature id is required")
    zone = Zone(
        zone_id=str(zone_id),
        geometry_type=feature.geometry.type,
        coordinates=feature.geometry.coordinates,
        properties=dict(feature.properties),
    )
    if not zone.is_supported:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported geometry type: {zone.geometry_type}",
        )
    return zone


def _require_mode(session: ZoneSession, edit: str) -> None:
    """Reject an edit the current interaction mode does not allow."""
    if not session.mode.permits(edit):
        mode = "Draw" if edit == "insert" else "Modify"
        raise HTTPException(status_code=409, detail=f"{mode} mode is off")


def _status(session: ZoneSession) -> dict:
    return {
        "load_state": session.load_state.value,
        "save_state": session.save_state.value,
        "last_error": session.last_error,
        "mode": session.mode.to_dict(),
        "zone_count": len(session.collection),
    }


# ==================
# Session endpoints
# ==================

@router.get("/")
async def list_zones(session: ZoneSession = Depends(get_session)):
    """All zones in the session as a GeoJSON FeatureCollection."""
    return export_geojson(session.zones)


@router.get("/operations")
async def get_operations(session: ZoneSession = Depends(get_session)):
    """Pending inserted / modified / deleted zone ids."""
    return session.get_all_operations()


@router.get("/status")
async def get_status(session: ZoneSession = Depends(get_session)):
    """Load and save state, last error and interaction mode."""
    return _status(session)


@router.post("/load")
async def load_zones(
    body: Optional[LoadRequest] = None,
    sync: SyncClient = Depends(get_sync_client),
):
    """Reload zones from the server. Pending edits are discarded."""
    url = body.url if body is not None else None
    try:
        zones = await sync.load(url)
    except LoadError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "loaded", "zone_count": len(zones)}


@router.post("/save")
async def save_zones(sync: SyncClient = Depends(get_sync_client)):
    """Send pending edits as one WFS-T transaction."""
    try:
        result = await sync.save()
    except NoChangesError:
        return {"status": "no_changes"}
    except SaveInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SaveError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "saved", **result.to_dict()}


@router.post("/mode/draw")
async def toggle_draw(session: ZoneSession = Depends(get_session)):
    session.toggle_draw()
    return session.mode.to_dict()


@router.post("/mode/modify")
async def toggle_modify(session: ZoneSession = Depends(get_session)):
    session.toggle_modify()
    return session.mode.to_dict()


# ==================
# Zone edit endpoints
# ==================

@router.post("/")
async def add_zone(feature: ZoneFeature, session: ZoneSession = Depends(get_session)):
    """Add a zone drawn by the user."""
    _require_mode(session, "insert")
    zone = _to_zone(feature)
    status = session.add_zone(zone)
    logger.debug(f"Zone {zone.zone_id} added ({status.value})")
    return {"zone_id": zone.zone_id, "status": status.value}


@router.get("/{zone_id}")
async def get_zone(zone_id: str, session: ZoneSession = Depends(get_session)):
    zone = session.collection.get(zone_id)
    if zone is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone.to_feature()


@router.put("/{zone_id}")
async def modify_zone(
    zone_id: str,
    feature: ZoneFeature,
    session: ZoneSession = Depends(get_session),
):
    """Replace a zone's geometry and properties."""
    _require_mode(session, "modify")
    zone = _to_zone(feature, zone_id)
    status = session.modify_zone(zone)
    if status is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return {"zone_id": zone_id, "status": status.value}


@router.delete("/{zone_id}")
async def delete_zone(zone_id: str, session: ZoneSession = Depends(get_session)):
    """Delete a zone."""
    _require_mode(session, "delete")
    if not session.delete_zone(zone_id):
        raise HTTPException(status_code=404, detail="Zone not found")
    return {"status": "deleted", "zone_id": zone_id}
