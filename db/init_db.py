"""Create the TrackShare tables from ORM models.

Production schema changes go through the hosted database; this is for
local development and the test suite.
"""

from sqlalchemy.engine import Engine

from db.models import Base


def init_schema(bind: Engine) -> list[str]:
    """Create any missing tables and return the table names."""
    Base.metadata.create_all(bind=bind)
    return sorted(Base.metadata.tables)


if __name__ == "__main__":
    from db.session import engine

    tables = init_schema(engine)
    print(f"DB schema ready: {', '.join(tables)}")
