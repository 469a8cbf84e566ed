"""Migration: add the notification_state table + index. Idempotent."""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from db.models import NotificationState

logger = logging.getLogger(__name__)


def run(bind: Engine | None = None) -> bool:
    """Create ``notification_state`` on a database the frontend already owns.

    Safe to run multiple times — checks for the table before creating it.

    Returns:
        True if the table was created, False if it already existed.
    """
    if bind is None:
        from db.session import engine as bind

    with bind.begin() as conn:
        if inspect(conn).has_table(NotificationState.__tablename__):
            logger.info("notification_state table already exists — skipping")
            return False
        NotificationState.__table__.create(conn)
        logger.info("Migration complete")
        return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
