"""
Attempt Engine

The attempt lifecycle, its public entry surface and the examiner-side
authoring operations.
"""

from .state_machine import AttemptStateMachine, validate_submission
from .orchestrator import (
    AttemptResults,
    AttemptSession,
    AttemptSummary,
    QuestionResult,
    SessionOrchestrator
)
from .authoring import AuthoringService, QuestionDraft

__all__ = [
    'AttemptStateMachine',
    'validate_submission',
    'SessionOrchestrator',
    'AttemptSession',
    'AttemptResults',
    'AttemptSummary',
    'QuestionResult',
    'AuthoringService',
    'QuestionDraft',
]
