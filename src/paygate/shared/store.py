from typing import Any

from sqlalchemy import Engine, event, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, create_engine, select

# Tables must be registered on SQLModel.metadata before create_all
from paygate.models.schema import PaymentApplication, User  # noqa: F401
from paygate.shared import Logger

logger = Logger(__name__).get_logger()


def build_engine(database_uri: str) -> Engine:
    """Create an engine for ``database_uri`` and make sure every table exists."""
    connect_args = {}
    if database_uri.startswith("sqlite"):
        # FastAPI serves sync routes from a thread pool
        connect_args = {"check_same_thread": False, "timeout": 30}

    new_engine = create_engine(database_uri, connect_args=connect_args)

    if database_uri.startswith("sqlite"):

        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    SQLModel.metadata.create_all(new_engine)
    logger.debug("Database ready at %s", new_engine.url.render_as_string())
    return new_engine


class Repository[T: SQLModel]:
    """Equality-filter persistence for one SQLModel table.

    The workflow only ever needs ``find``, ``get``, ``insert`` and the
    conditional ``update_if_match``; nothing here knows about encryption.
    """

    def __init__(self, engine: Engine, model: type[T]):
        self.engine = engine
        self.model = model

    def find(self, **filters: Any) -> list[T]:
        statement = select(self.model)
        for name, value in filters.items():
            statement = statement.where(getattr(self.model, name) == value)

        if "submitted_at" in self.model.model_fields:
            statement = statement.order_by(self.model.submitted_at.desc())

        with Session(self.engine) as session:
            return list(session.exec(statement).all())

    def find_one(self, **filters: Any) -> T | None:
        found = self.find(**filters)
        return found[0] if found else None

    def get(self, record_id: str) -> T | None:
        with Session(self.engine) as session:
            return session.get(self.model, record_id)

    def insert(self, record: T) -> str:
        """Persist ``record`` and return its id.

        Raises ``IntegrityError`` when a unique constraint rejects the row;
        the database, not an earlier lookup, decides conflicts.
        """
        with Session(self.engine) as session:
            session.add(record)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise
            session.refresh(record)
            logger.debug("Inserted %s %s", self.model.__name__, record.id)
            return record.id

    def update_if_match(
        self, record_id: str, predicate: dict[str, Any], patch: dict[str, Any]
    ) -> bool:
        """Apply ``patch`` only if the row still matches ``predicate``.

        Runs as a single ``UPDATE ... WHERE`` so concurrent callers cannot
        both observe the old state; returns True when exactly one row changed.
        """
        statement = update(self.model).where(self.model.id == record_id)
        for name, value in predicate.items():
            statement = statement.where(getattr(self.model, name) == value)
        statement = statement.values(**patch)

        with self.engine.begin() as connection:
            matched = connection.execute(statement).rowcount == 1

        logger.debug(
            "Conditional update of %s %s matched=%s",
            self.model.__name__,
            record_id,
            matched,
        )
        return matched
