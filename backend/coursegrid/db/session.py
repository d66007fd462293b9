from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from coursegrid.core.config import get_settings


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        created = create_engine(url, **kwargs)
        install_sqlite_pragmas(created)
        return created
    return create_engine(url, pool_pre_ping=True, **kwargs)


def install_sqlite_pragmas(target: Engine) -> None:
    """SQLite leaves foreign keys off per connection unless asked."""

    @event.listens_for(target, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
