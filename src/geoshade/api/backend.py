"""Reference selections backend — save, list and export named selections.

Implements the REST surface the Persistence Client consumes so the engine
can run end to end locally. Simple in-memory store; a real deployment
points BACKEND_URL at its own service.
"""

import csv
import io
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from geoshade.api.schemas import CreateSelectionRequest, StoredSelection
from geoshade.core.regions import COUNTY_OPTIONS, STATE_CODES
from geoshade.core.types import Level

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/selections", tags=["selections"])

_selections: dict[str, dict] = {}

_STATE_NAMES = {code: name for name, code in STATE_CODES.items()}
_COUNTY_NAMES = {r.code: r.name for r in COUNTY_OPTIONS}


def clear_store() -> None:
    _selections.clear()


@router.post("", response_model=StoredSelection, status_code=201)
async def create_selection(request: CreateSelectionRequest):
    """Store a named selection."""
    entry = {
        "id": str(uuid.uuid4())[:8],
        "name": request.name,
        "level": request.level,
        "items": list(dict.fromkeys(request.items)),
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    _selections[entry["id"]] = entry
    logger.info("Stored selection %s: %s (%d items)", entry["id"], request.name, len(entry["items"]))
    return StoredSelection(**entry)


@router.get("", response_model=list[StoredSelection])
async def list_selections():
    """List stored selections, newest first."""
    return [
        StoredSelection(**entry)
        for entry in sorted(_selections.values(), key=lambda x: x["created_at"], reverse=True)
    ]


@router.get("/{selection_id}/export.csv")
async def export_selection(selection_id: str):
    """Download one selection as CSV: level, code, name."""
    entry = _selections.get(selection_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Selection not found")

    names = _STATE_NAMES if entry["level"] == Level.STATE else _COUNTY_NAMES
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["level", "code", "name"])
    for code in entry["items"]:
        writer.writerow([Level(entry["level"]).value, code, names.get(code, "")])

    filename = f"selection-{selection_id}.csv"
    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
