"""Custom exception classes for Quiz Arena.

This module defines application-specific exceptions following Google Python
Style Guide.
"""


class QuizArenaError(Exception):
    """Base exception for all Quiz Arena errors."""

    pass


class UserNotFoundError(QuizArenaError):
    """Raised when a requested user cannot be found."""

    def __init__(self, user_id: str):
        """Initialize the exception.

        Args:
            user_id: The ID of the user that was not found.
        """
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class QuizNotFoundError(QuizArenaError):
    """Raised when a requested quiz cannot be found."""

    def __init__(self, quiz_id: str):
        """Initialize the exception.

        Args:
            quiz_id: The ID of the quiz that was not found.
        """
        self.quiz_id = quiz_id
        super().__init__(f"Quiz '{quiz_id}' not found")


class InvalidQuizPasswordError(QuizArenaError):
    """Raised when a quiz is requested with the wrong access password."""

    pass


class InvalidAnswerError(QuizArenaError):
    """Raised when a submitted answer does not match the quiz."""

    def __init__(self, message: str, question_id: str = None):
        self.question_id = question_id
        super().__init__(message)


class AttemptError(QuizArenaError):
    """Raised when a submission has no open attempt or arrives too late."""

    pass


class RoleChangeError(QuizArenaError):
    """Raised when a promotion, demotion or deletion breaks the role rules."""

    pass


class VerificationError(QuizArenaError):
    """Raised when a registration verification code is missing or wrong."""

    pass


class MailDeliveryError(QuizArenaError):
    """Raised when an email could not be handed to the SMTP server."""

    pass
