"""
ExamLink Assessment Engine

Timed assessments shared through an access token and taken asynchronously:
1. Examiners author assessments with free-text and selectable questions
2. Participants create or resume a single attempt per assessment
3. Answers are accepted strictly in order, one per question
4. Each answer is graded on submission and the score is frozen on finalize
"""

__version__ = "0.1.0"
