from typing import Any, Dict
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from config.setting import settings


def engine_options(url: str) -> Dict[str, Any]:
    """Engine keyword arguments for a database url

    SQLite gets a thread-agnostic connection (and one shared
    connection for in-memory databases); anything else gets a
    recycled queue pool.
    """
    options: Dict[str, Any] = {"pool_pre_ping": True, "echo": settings.DB_ECHO}
    if not url.startswith("sqlite"):
        options.update(
            poolclass=QueuePool, pool_recycle=3600, pool_size=10, max_overflow=20
        )
        return options

    options["connect_args"] = {"check_same_thread": False}
    if ":memory:" in url:
        options["poolclass"] = StaticPool
    return options


class DatabaseSetup:
    """Process-wide engine, session factory and declarative base"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._engine = create_engine(
                settings.DATABASE_URL, **engine_options(settings.DATABASE_URL)
            )
            instance._session_maker = sessionmaker(
                bind=instance._engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
            instance._base = declarative_base()
            cls._instance = instance
        return cls._instance

    def get_session(self) -> sessionmaker:
        return self._session_maker

    @property
    def get_base(self) -> Any:
        return self._base

    @property
    def get_engine(self) -> Engine:
        return self._engine


database = DatabaseSetup()
Base = database.get_base
