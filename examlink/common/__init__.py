"""
Common Components for ExamLink

Infrastructure shared across the engine, the stores and the HTTP layer:
logging, the error hierarchy and per-key locks.
"""

from examlink.common.logger import app_logger
from examlink.common.locks import KeyedLock

__all__ = ['app_logger', 'KeyedLock']
