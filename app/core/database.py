import logging

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    # WAL: les lecteurs ne sont pas bloqués par l'écrivain
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Handle sur la base: un engine + une fabrique de sessions.

    Construit explicitement (create_app ou tests) puis passé aux repositories
    via get_db. Pas d'instance globale.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine = create_engine(url, echo=echo, connect_args=connect_args)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_schema(self):
        # importe les modèles pour enregistrer les tables dans Base.metadata
        from app.models import task, pomodoro_session  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self):
        Base.metadata.drop_all(bind=self.engine)

    def session(self):
        return self.SessionLocal()

    def dispose(self):
        logger.info("Disposing store engine for %s", self.engine.url)
        self.engine.dispose()


def get_db(request: Request):
    """Dépendance sessionDB"""
    db = request.app.state.store.session()
    try:
        yield db
    finally:
        db.close()
