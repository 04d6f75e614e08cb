"""Geoshade configuration — process settings and the runtime config resolver.

Two layers:

  - ``Settings``: pydantic-settings model read from the environment / ``.env``.
    ``google_maps_api_key`` and ``backend_url`` here are the *build-time
    injected* values of the resolver chain.
  - ``ConfigResolver``: resolves the API key and backend URL from
    build-time value → locally persisted value → launch URL query param → "".
    User edits write through to the persisted JSON file immediately.
"""

import json
import logging
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from pydantic import model_validator
from pydantic_settings import BaseSettings

from geoshade.core.types import Configuration

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Build-time injected values (highest precedence)
    google_maps_api_key: str = ""
    backend_url: str = ""

    # URL the client was opened with — supplies ?gmaps_key=...&backend=...
    launch_url: str = ""

    # Client-local persisted overrides
    state_file: str = "~/.geoshade/config.json"

    # External services
    boundaries_url: str = (
        "https://raw.githubusercontent.com/PublicaMundi/MappingAPI"
        "/master/data/geojson/us-states.json"
    )
    geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    http_timeout: float = 15.0

    # Overlay behaviour
    notice_ttl_seconds: float = 2.5
    marker_cap: int = 12

    # Initial viewport (USA center)
    map_center_lat: float = 39.8283
    map_center_lng: float = -98.5795
    map_zoom: int = 4

    @model_validator(mode="after")
    def _clean_values(self) -> "Settings":
        """Strip whitespace/newlines from the key and trailing slashes from the backend URL."""
        if self.google_maps_api_key != self.google_maps_api_key.strip():
            self.google_maps_api_key = self.google_maps_api_key.strip()
        self.backend_url = self.backend_url.strip().rstrip("/")
        return self

    # Logging
    log_json: bool = True
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()


# ---------------------------------------------------------------------------
# Runtime configuration resolver
# ---------------------------------------------------------------------------

# field name → (persisted key, URL query parameter)
_FIELDS: dict[str, tuple[str, str]] = {
    "api_key": ("gmaps_key", "gmaps_key"),
    "backend_url": ("backend_url", "backend"),
}


def _query_params(launch_url: str) -> dict[str, str]:
    """Extract the first value of each query parameter from a launch URL."""
    if not launch_url:
        return {}
    params = parse_qs(urlparse(launch_url).query)
    return {k: v[0] for k, v in params.items() if v}


class ConfigResolver:
    """Resolves and persists the API key and backend endpoint.

    Values are resolved once at construction; afterwards only ``set`` changes
    them. Nothing here raises on missing values — consumers check for empty
    strings and degrade (no map, save disabled).
    """

    def __init__(
        self,
        build: Settings | None = None,
        state_file: str | Path | None = None,
        launch_url: str | None = None,
    ) -> None:
        build = build or settings
        self._path = Path(state_file or build.state_file).expanduser()
        self._persisted = self._read_persisted()

        build_values = {"api_key": build.google_maps_api_key, "backend_url": build.backend_url}
        url_values = _query_params(build.launch_url if launch_url is None else launch_url)

        values: dict[str, str] = {}
        sources: dict[str, str] = {}
        for field, (persisted_key, query_key) in _FIELDS.items():
            if build_values[field]:
                values[field], sources[field] = build_values[field], "build"
            elif self._persisted.get(persisted_key):
                values[field], sources[field] = self._persisted[persisted_key], "persisted"
            elif url_values.get(query_key):
                values[field], sources[field] = url_values[query_key], "url"
            else:
                values[field], sources[field] = "", "default"

        self._config = Configuration(
            api_key=values["api_key"],
            backend_url=values["backend_url"].rstrip("/"),
            sources=sources,
        )
        logger.info(
            "Configuration resolved (api_key from %s, backend_url from %s)",
            sources["api_key"], sources["backend_url"],
        )

    def get(self) -> Configuration:
        """Return a copy of the current configuration."""
        return Configuration(
            api_key=self._config.api_key,
            backend_url=self._config.backend_url,
            sources=dict(self._config.sources),
        )

    def set(self, api_key: str | None = None, backend_url: str | None = None) -> Configuration:
        """Apply an explicit user edit; persist changed non-empty fields only."""
        updates = {"api_key": api_key, "backend_url": backend_url}
        dirty = False
        for field, value in updates.items():
            if value is None:
                continue
            value = value.strip()
            if field == "backend_url":
                value = value.rstrip("/")
            if value == getattr(self._config, field):
                continue
            setattr(self._config, field, value)
            self._config.sources[field] = "user"
            # Blank edits are never written — they would clobber a real saved value
            if value:
                self._persisted[_FIELDS[field][0]] = value
                dirty = True

        if dirty:
            self._write_persisted()
        return self.get()

    # -- persistence --------------------------------------------------------

    def _read_persisted(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: str(v) for k, v in data.items() if isinstance(v, str)}

    def _write_persisted(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._persisted, indent=2))
        logger.info("Persisted configuration to %s", self._path)
