from __future__ import annotations

import logging
from dataclasses import dataclass

from db.database import write_transaction
from utils.counters import DateCounter, DateLike, date_key
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

STORY_RESOURCE = "story"

_QUOTA_COUNTER = DateCounter("quota_usage", "count", scope_columns=("owner_id", "resource"))


@dataclass(frozen=True)
class QuotaStatus:
    resource: str
    date: str
    count: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit


class QuotaTracker:
    """Per-day usage limit for one resource, e.g. generated stories."""

    def __init__(self, resource: str, daily_limit: int):
        if not resource or not resource.strip():
            raise InvalidInputError("Quota resource name is required")
        if daily_limit < 0:
            raise InvalidInputError("Daily limit cannot be negative")
        self.resource = resource.strip().lower()
        self.daily_limit = daily_limit

    def _scope(self, owner_id: str) -> dict:
        return {"owner_id": owner_id, "resource": self.resource}

    def get_count(self, conn, owner_id: str, day: DateLike) -> int:
        return _QUOTA_COUNTER.get_count(conn, self._scope(owner_id), day)

    def increment(self, conn, owner_id: str, day: DateLike) -> int:
        return _QUOTA_COUNTER.increment(conn, self._scope(owner_id), day)

    def status(self, conn, owner_id: str, day: DateLike) -> QuotaStatus:
        return QuotaStatus(
            resource=self.resource,
            date=date_key(day),
            count=self.get_count(conn, owner_id, day),
            limit=self.daily_limit,
        )

    def remaining(self, conn, owner_id: str, day: DateLike) -> int:
        return self.status(conn, owner_id, day).remaining

    def try_consume(self, conn, owner_id: str, day: DateLike) -> bool:
        """Use one unit if the day still has room; the check and the increment share a transaction."""
        with write_transaction(conn):
            if self.get_count(conn, owner_id, day) >= self.daily_limit:
                logger.info("Quota %s exhausted for %s on %s", self.resource, owner_id, date_key(day))
                return False
            self.increment(conn, owner_id, day)
            return True

    def purge_older_than(self, conn, cutoff: DateLike) -> int:
        """Drop this resource's rows dated before ``cutoff``, for every owner."""
        return _QUOTA_COUNTER.purge_older_than(conn, cutoff, scope={"resource": self.resource})


def purge_quota_older_than(conn, cutoff: DateLike) -> int:
    """Drop quota rows of every resource dated before ``cutoff``."""
    return _QUOTA_COUNTER.purge_older_than(conn, cutoff)
