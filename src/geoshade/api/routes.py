"""API route handlers for the geoshade engine session.

Thin plumbing over GeoSession: every handler mutates through the
synchronizer (never the store directly) so the overlay stays in sync.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from geoshade.api.schemas import (
    ClickRequest,
    ClickResponse,
    ConfigResponse,
    ConfigUpdateRequest,
    LevelRequest,
    NoticeResponse,
    OptionResponse,
    SavedSelectionResponse,
    SaveRequest,
    SaveResponse,
    SelectionResponse,
    ToggleRequest,
)
from geoshade.core.regions import options_for
from geoshade.session import GeoSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["engine"])

_session: GeoSession | None = None


def set_geo_session(session: GeoSession | None) -> None:
    global _session
    _session = session


def get_geo_session() -> GeoSession:
    if _session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return _session


def _selection(session: GeoSession) -> SelectionResponse:
    snap = session.store.get()
    return SelectionResponse(
        level=snap.level,
        items=list(snap.items),
        drawn=list(session.surface.markers),
    )


def _saved(session: GeoSession) -> list[SavedSelectionResponse]:
    return [
        SavedSelectionResponse(
            id=s.id,
            name=s.name,
            level=s.level,
            items=s.items,
            export_url=session.persistence.export_url(s.id),
        )
        for s in session.persistence.saved
    ]


# -- configuration ----------------------------------------------------------

@router.get("/config", response_model=ConfigResponse)
async def get_config(session: GeoSession = Depends(get_geo_session)):
    config = session.resolver.get()
    return ConfigResponse(
        api_key_set=bool(config.api_key),
        backend_url=config.backend_url,
        map_enabled=config.map_enabled,
        save_enabled=config.save_enabled,
        sources=config.sources,
    )


@router.put("/config", response_model=ConfigResponse)
async def update_config(request: ConfigUpdateRequest, session: GeoSession = Depends(get_geo_session)):
    config = await session.update_config(api_key=request.api_key, backend_url=request.backend_url)
    return ConfigResponse(
        api_key_set=bool(config.api_key),
        backend_url=config.backend_url,
        map_enabled=config.map_enabled,
        save_enabled=config.save_enabled,
        sources=config.sources,
    )


# -- selection --------------------------------------------------------------

@router.get("/options", response_model=list[OptionResponse])
async def list_options(session: GeoSession = Depends(get_geo_session)):
    """Checklist entries for the active level."""
    return [
        OptionResponse(code=opt.code, name=opt.name, selected=session.store.is_selected(opt.code))
        for opt in options_for(session.store.level)
    ]


@router.get("/selection", response_model=SelectionResponse)
async def get_selection(session: GeoSession = Depends(get_geo_session)):
    return _selection(session)


@router.post("/selection/toggle", response_model=SelectionResponse)
async def toggle(request: ToggleRequest, session: GeoSession = Depends(get_geo_session)):
    await session.overlay.toggle(request.code)
    return _selection(session)


@router.post("/selection/clear", response_model=SelectionResponse)
async def clear(session: GeoSession = Depends(get_geo_session)):
    await session.overlay.clear()
    return _selection(session)


@router.put("/selection/level", response_model=SelectionResponse)
async def set_level(request: LevelRequest, session: GeoSession = Depends(get_geo_session)):
    await session.overlay.set_level(request.level)
    return _selection(session)


# -- map --------------------------------------------------------------------

@router.post("/map/click", response_model=ClickResponse)
async def click(request: ClickRequest, session: GeoSession = Depends(get_geo_session)):
    code = await session.overlay.handle_click(request.lat, request.lng)
    return ClickResponse(
        code=code,
        selected=bool(code) and session.store.is_selected(code),
        selection=_selection(session),
    )


@router.get("/map/overlays")
async def overlays(session: GeoSession = Depends(get_geo_session)):
    """Current overlay as GeoJSON, plus viewport and any overlay notice."""
    surface = session.surface
    return {
        **surface.to_geojson(),
        "center": {"lat": surface.center.lat, "lng": surface.center.lng},
        "zoom": surface.zoom,
        "notice": surface.overlay_notice,
    }


@router.get("/notices", response_model=list[NoticeResponse])
async def notices(session: GeoSession = Depends(get_geo_session)):
    return [NoticeResponse(id=n.id, message=n.message, kind=n.kind) for n in session.notices.active()]


@router.delete("/notices/{notice_id}", status_code=204)
async def dismiss_notice(notice_id: int, session: GeoSession = Depends(get_geo_session)):
    session.notices.dismiss(notice_id)


# -- persistence ------------------------------------------------------------

@router.get("/saved", response_model=list[SavedSelectionResponse])
async def list_saved(session: GeoSession = Depends(get_geo_session)):
    return _saved(session)


@router.post("/saved", response_model=SaveResponse)
async def save(request: SaveRequest, session: GeoSession = Depends(get_geo_session)):
    saved = await session.save(request.name)
    return SaveResponse(saved=saved, selections=_saved(session))
