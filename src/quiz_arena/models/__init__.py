"""Database models; importing this package registers every table."""

from .base import Base
from .user import UserModel
from .quiz import QuizModel, QuestionModel
from .quiz_attempt import QuizAttemptModel
from .submission import SubmissionModel
from .verification_code import VerificationCodeModel
from .subscriber import SubscriberModel

__all__ = [
    "Base",
    "UserModel",
    "QuizModel",
    "QuestionModel",
    "QuizAttemptModel",
    "SubmissionModel",
    "VerificationCodeModel",
    "SubscriberModel",
]
