"""
Attempt domain module.

Contains attempts, recorded answers and location samples, and the store
interface the attempt engine persists them through.
"""

from .model import Attempt, AttemptStatus, LocationSample, RecordedAnswer, Submission
from .repository import AttemptStore
from .memory_repository import MemoryAttemptStore

__all__ = [
    'Attempt',
    'AttemptStatus',
    'LocationSample',
    'RecordedAnswer',
    'Submission',
    'AttemptStore',
    'MemoryAttemptStore',
]
