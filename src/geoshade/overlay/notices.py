"""User-visible notices.

Transient notices (lookup failures, unresolvable clicks) expire on their own
after a short TTL. Blocking notices (save failures) stay until dismissed.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass

from geoshade.config import settings

logger = logging.getLogger(__name__)

TRANSIENT = "transient"
BLOCKING = "blocking"

# Wording for clicks outside the demo data coverage
COVERAGE_GAP = "No {level} data for that spot (outside the demo coverage)"


@dataclass(frozen=True)
class Notice:
    id: int
    message: str
    kind: str = TRANSIENT


class NoticeBoard:
    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._ttl = settings.notice_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._notices: dict[int, Notice] = {}
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._ids = itertools.count(1)

    def hint(self, message: str) -> Notice:
        """Post an auto-expiring hint.

        Expiry is scheduled on the running loop; outside a loop the hint
        simply stays until dismissed.
        """
        notice = Notice(id=next(self._ids), message=message, kind=TRANSIENT)
        self._notices[notice.id] = notice
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timers[notice.id] = loop.call_later(self._ttl, self.dismiss, notice.id)
        logger.info("Hint: %s", message)
        return notice

    def fail(self, message: str) -> Notice:
        """Post a blocking failure notice."""
        notice = Notice(id=next(self._ids), message=message, kind=BLOCKING)
        self._notices[notice.id] = notice
        logger.warning("Failure notice: %s", message)
        return notice

    def dismiss(self, notice_id: int) -> None:
        self._notices.pop(notice_id, None)
        timer = self._timers.pop(notice_id, None)
        if timer is not None:
            timer.cancel()

    def active(self) -> list[Notice]:
        return list(self._notices.values())

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._notices.clear()
