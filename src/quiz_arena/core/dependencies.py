"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from quiz_arena.core.database import get_db
from quiz_arena.utils.mailer import Mailer
from quiz_arena.utils.quiz_manager import QuizManager
from quiz_arena.utils.security import BcryptPasswordHasher, PasswordHasher
from quiz_arena.utils.submission_manager import SubmissionManager
from quiz_arena.utils.subscription_manager import SubscriptionManager
from quiz_arena.utils.user_manager import UserManager
from quiz_arena.utils.verification_manager import VerificationManager

# Singletons (stateless, safe to share across requests)
_password_hasher_instance: PasswordHasher = None
_mailer_instance: Mailer = None


def get_password_hasher() -> PasswordHasher:
    """Get the PasswordHasher singleton instance.

    Returns:
        PasswordHasher instance (singleton).
    """
    global _password_hasher_instance
    if _password_hasher_instance is None:
        _password_hasher_instance = BcryptPasswordHasher()
    return _password_hasher_instance


def get_mailer() -> Mailer:
    """Get the Mailer singleton instance.

    Returns:
        Mailer instance (singleton).
    """
    global _mailer_instance
    if _mailer_instance is None:
        _mailer_instance = Mailer()
    return _mailer_instance


def get_user_manager(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.
        hasher: Password hashing strategy.

    Returns:
        UserManager instance.
    """
    return UserManager(db, hasher)


def get_quiz_manager(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> QuizManager:
    """Get QuizManager instance with request-scoped DB session.

    Args:
        db: Database session.
        hasher: Password hashing strategy.

    Returns:
        QuizManager instance.
    """
    return QuizManager(db, hasher)


def get_submission_manager(
    db: Session = Depends(get_db),
    quiz_manager: QuizManager = Depends(get_quiz_manager),
) -> SubmissionManager:
    """Get SubmissionManager instance with request-scoped DB session."""
    return SubmissionManager(db, quiz_manager)


def get_verification_manager(
    db: Session = Depends(get_db),
    user_manager: UserManager = Depends(get_user_manager),
    mailer: Mailer = Depends(get_mailer),
) -> VerificationManager:
    """Get VerificationManager instance with request-scoped DB session."""
    return VerificationManager(db, user_manager, mailer)


def get_subscription_manager(db: Session = Depends(get_db)) -> SubscriptionManager:
    return SubscriptionManager(db)


# Type aliases for dependency injection
UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]
QuizManagerDep = Annotated[QuizManager, Depends(get_quiz_manager)]
SubmissionManagerDep = Annotated[
    SubmissionManager, Depends(get_submission_manager)
]
VerificationManagerDep = Annotated[
    VerificationManager, Depends(get_verification_manager)
]
SubscriptionManagerDep = Annotated[
    SubscriptionManager, Depends(get_subscription_manager)
]
