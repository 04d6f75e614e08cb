"""Pydantic request/response models for the geoshade API.

These are the API contract — decoupled from the internal domain dataclasses.
"""

from pydantic import BaseModel, Field

from geoshade.core.types import Level


class ConfigResponse(BaseModel):
    api_key_set: bool
    backend_url: str
    map_enabled: bool
    save_enabled: bool
    sources: dict[str, str] = {}


class ConfigUpdateRequest(BaseModel):
    """Partial config edit. Omitted fields are left alone."""

    api_key: str | None = None
    backend_url: str | None = None


class OptionResponse(BaseModel):
    code: str
    name: str
    selected: bool


class SelectionResponse(BaseModel):
    level: Level
    items: list[str]
    drawn: list[str] = []


class ToggleRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16, examples=["CA", "06075"])

    # Stripped before the length check, so whitespace-only codes are rejected
    model_config = {"str_strip_whitespace": True}


class LevelRequest(BaseModel):
    level: Level


class ClickRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ClickResponse(BaseModel):
    code: str | None = None
    selected: bool = False
    selection: SelectionResponse


class NoticeResponse(BaseModel):
    id: int
    message: str
    kind: str


class SaveRequest(BaseModel):
    name: str = Field("My Selection", max_length=200)


class SavedSelectionResponse(BaseModel):
    id: str
    name: str
    level: str
    items: list[str] = []
    export_url: str = ""


class SaveResponse(BaseModel):
    saved: bool
    selections: list[SavedSelectionResponse]


# ---------------------------------------------------------------------------
# Reference backend contract (/api/selections)
# ---------------------------------------------------------------------------

class CreateSelectionRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    level: Level
    items: list[str] = []


class StoredSelection(BaseModel):
    id: str
    name: str
    level: Level
    items: list[str]
    created_at: str
