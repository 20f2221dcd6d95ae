"""
Assessment catalog domain module.

Contains the assessment and question model and the repositories for
reading and authoring them.
"""

from .model import AnswerOption, Assessment, Question, QuestionModality
from .repository import AssessmentCatalog
from .memory_repository import MemoryAssessmentCatalog

__all__ = [
    'AnswerOption',
    'Assessment',
    'Question',
    'QuestionModality',
    'AssessmentCatalog',
    'MemoryAssessmentCatalog',
]
