"""
Persisted notification read-state.

Notifications are derived on every request, so the only thing stored is
"user U has read notification N" as a ``notification_state`` row. Marking
is idempotent: ids already marked, including by a concurrent request, are
skipped, never an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from db.models import NotificationState

logger = logging.getLogger(__name__)

# Both dialects support ON CONFLICT DO NOTHING on the unique pair.
_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


class NotificationStateStore:
    """Read/write access to ``notification_state`` for one session.

    Args:
        session: Open SQLAlchemy session. The store commits its own writes.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def read_ids(self, user_id: str) -> set[str]:
        """Return every notification id the user has marked as read."""
        stmt = select(NotificationState.notification_id).where(
            NotificationState.user_id == user_id
        )
        return set(self._session.scalars(stmt).all())

    def mark_read(self, user_id: str, notification_ids: Iterable[str], now: datetime) -> int:
        """Mark notifications as read.

        Rows go in with ``INSERT ... ON CONFLICT DO NOTHING`` on
        ``(user_id, notification_id)``, so an id marked by a concurrent
        request between our read and our write is skipped, not an error.

        Args:
            user_id: Owner of the notifications.
            notification_ids: Ids to mark; duplicates and already-read ids
                are ignored.
            now: Read timestamp (supplied by the caller).

        Returns:
            Number of ids newly marked.
        """
        wanted = [nid for nid in dict.fromkeys(notification_ids) if nid]
        if not wanted:
            return 0
        existing = self.read_ids(user_id)
        fresh = [nid for nid in wanted if nid not in existing]
        if not fresh:
            return 0
        insert = _INSERTS[self._session.get_bind().dialect.name]
        stmt = (
            insert(NotificationState)
            .values([{"user_id": user_id, "notification_id": nid, "read_at": now} for nid in fresh])
            .on_conflict_do_nothing(index_elements=["user_id", "notification_id"])
        )
        marked = self._session.execute(stmt).rowcount
        self._session.commit()
        if marked:
            logger.info("notifications: user %s marked %d as read", user_id, marked)
        return marked
