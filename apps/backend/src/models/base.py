from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all Sharkbid ORM models.

    The schema is owned by the managed Postgres store; these mappings only
    describe the columns the backend reads and writes.
    """
