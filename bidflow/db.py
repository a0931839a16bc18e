from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from bidflow.core.settings import settings

Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        # SQLite + threads: connections are shared across worker threads
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args

    eng = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        # cascades + ON DELETE SET NULL only work with foreign_keys on
        @event.listens_for(eng, "connect")
        def _sqlite_fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return eng


engine = make_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind: Engine = engine) -> None:
    from bidflow import models  # noqa: F401  (registers the ORM models)

    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
