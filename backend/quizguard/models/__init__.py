from .quiz_attempt import QuizAttempt
from .proctoring_violation import ProctoringViolation
from .proctoring_log import ProctoringLog

__all__ = [
    "QuizAttempt",
    "ProctoringViolation",
    "ProctoringLog",
]
