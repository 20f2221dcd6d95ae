"""
Database Session Management

Transactional session scope shared by the SQL-backed repositories.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from examlink.common.exceptions import StorageUnavailableError
from examlink.common.logger import app_logger
from examlink.database.init_db import get_session_factory

logger = app_logger.getChild("database.session")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlRepository:
    """
    Base class for repositories backed by an async SQLAlchemy session factory.

    Each public repository method runs in its own transaction. Integrity
    errors propagate unchanged so callers can translate them into domain
    conflicts; every other driver error becomes ``StorageUnavailableError``.
    """

    def __init__(self, domain_type: str, session_factory: Optional[async_sessionmaker] = None):
        """
        Initialize the repository.

        Args:
            domain_type: Name of the stored entities, used in log messages
            session_factory: Session factory, defaults to the one created by
                ``initialize_database``
        """
        self.domain_type = domain_type
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker:
        return self._session_factory or get_session_factory()

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        """
        Provide an async transactional scope around a series of operations.
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database error in {self.domain_type} repository: {str(e)}")
            raise StorageUnavailableError(f"{self.domain_type} repository: {str(e)}", e)
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
