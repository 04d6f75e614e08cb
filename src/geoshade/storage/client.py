"""Persistence Client — save and list named selections on the backend.

Consistency is pulled from the server: after a successful POST the full
list is fetched again instead of inserting the new record locally. Export
is a static link to the backend's CSV endpoint; no CSV is built here.
"""

import logging
import time

import httpx

from geoshade.config import settings
from geoshade.core.types import Level, SavedSelection
from geoshade.overlay.notices import NoticeBoard

logger = logging.getLogger(__name__)

SELECTIONS_PATH = "/api/selections"


def _parse_saved(data) -> list[SavedSelection] | None:
    """Convert a list response into records. None if the body isn't a list."""
    if not isinstance(data, list):
        return None
    records = []
    for row in data:
        if not isinstance(row, dict) or "id" not in row:
            continue
        records.append(SavedSelection(
            id=str(row["id"]),
            name=row.get("name", ""),
            level=row.get("level", ""),
            items=list(row.get("items") or []),
        ))
    return records


class PersistenceClient:
    def __init__(
        self,
        backend_url: str,
        notices: NoticeBoard,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._backend_url = backend_url.rstrip("/")
        self._notices = notices
        self._transport = transport
        self._saved: list[SavedSelection] = []
        self._saving = False

    @property
    def enabled(self) -> bool:
        return bool(self._backend_url)

    @property
    def saving(self) -> bool:
        return self._saving

    @property
    def saved(self) -> list[SavedSelection]:
        return list(self._saved)

    def export_url(self, selection_id: str) -> str:
        return f"{self._backend_url}{SELECTIONS_PATH}/{selection_id}/export.csv"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.http_timeout, transport=self._transport)

    async def list_initial(self) -> list[SavedSelection]:
        """Load the saved list at startup. Failures are swallowed."""
        if not self.enabled:
            return self.saved
        try:
            async with self._client() as client:
                resp = await client.get(f"{self._backend_url}{SELECTIONS_PATH}")
                records = _parse_saved(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.info("Initial saved-list load failed: %s", e)
            return self.saved

        if records is not None:
            self._saved = records
        return self.saved

    async def save(self, name: str, level: Level, items: list[str] | tuple[str, ...]) -> bool:
        """POST a selection, then refresh the saved list from the server.

        Returns False without issuing any request when the name is blank,
        nothing is selected, the backend is not configured, or a save is
        already in flight. On failure a blocking notice is posted and the
        cached list is left as it was.
        """
        if not name.strip() or not items or not self.enabled or self._saving:
            return False

        body = {"name": name, "level": Level(level).value, "items": list(items)}
        self._saving = True
        start = time.monotonic()
        try:
            async with self._client() as client:
                resp = await client.post(f"{self._backend_url}{SELECTIONS_PATH}", json=body)
                if not resp.is_success:
                    logger.error("Save failed: %s %s", resp.status_code, resp.text[:200],
                                 extra={"status_code": resp.status_code})
                    self._notices.fail("Failed to save")
                    return False

                list_resp = await client.get(f"{self._backend_url}{SELECTIONS_PATH}")
                list_resp.raise_for_status()
                records = _parse_saved(list_resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error while saving: %s", e)
            self._notices.fail("Error while saving")
            return False
        finally:
            self._saving = False

        if records is not None:
            self._saved = records
        logger.info("Saved selection %r (%d items)", name, len(body["items"]),
                    extra={"geo_level": body["level"],
                           "duration_ms": round((time.monotonic() - start) * 1000)})
        return True
