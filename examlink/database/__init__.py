"""
Database Module

This module provides the database models and the engine lifecycle for the
SQL-backed stores.
"""

from examlink.database.base import Base, ModelBase, metadata
from examlink.database.init_db import (
    close_database,
    get_engine,
    get_session_factory,
    initialize_database
)

__all__ = [
    'Base',
    'ModelBase',
    'metadata',
    'initialize_database',
    'close_database',
    'get_engine',
    'get_session_factory',
]
