from collections.abc import Iterator
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite does not round-trip tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Database:
    """Explicitly constructed store handle.

    The application opens one at startup and disposes it on shutdown; nothing
    in the package reaches for a module-level engine.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        engine_options: dict = {'echo': echo}
        if url.startswith('sqlite'):
            engine_options['connect_args'] = {'check_same_thread': False}
            if url in {'sqlite://', 'sqlite:///:memory:'}:
                engine_options['poolclass'] = StaticPool

        self.url = url
        self.engine = create_engine(url, **engine_options)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
