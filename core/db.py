import logging
from core import setup
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session
import error

logger = logging.getLogger(__name__)


class CreateDBSession:
    """Synchronous database session context manager

    Rolls back on any error. ORM-level failures that are not driver
    errors surface as ``error.DatabaseError``.
    """
    def __init__(self):
        self.db_factory = setup.database.get_session()
        self.session = None

    def __enter__(self) -> Session:
        self.session = self.db_factory()
        return self.session

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if not self.session:
            return False
        if exc_type is not None:
            self.session.rollback()
        self.session.close()
        if isinstance(exc_value, SQLAlchemyError) and not isinstance(exc_value, DBAPIError):
            logger.error(f"Database operation failed: {exc_value}")
            raise error.DatabaseError() from exc_value
        return False
