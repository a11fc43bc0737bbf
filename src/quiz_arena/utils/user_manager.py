"""User management utilities.

This module provides user management functionality including account
storage, credential checks, profile updates and role administration.
"""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quiz_arena.core.exceptions import RoleChangeError, UserNotFoundError
from quiz_arena.models.quiz import QuizModel
from quiz_arena.models.quiz_attempt import QuizAttemptModel
from quiz_arena.models.submission import SubmissionModel
from quiz_arena.models.user import UserModel
from quiz_arena.schemas.user import ROLE_LADDER, Role, User
from quiz_arena.utils.converters import model_to_user, user_to_model
from quiz_arena.utils.security import PasswordHasher

logger = logging.getLogger(__name__)


class UserAlreadyExistsError(Exception):
    """Exception raised when trying to create a user that already exists."""

    pass


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, hasher: PasswordHasher):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            hasher: Password hashing strategy.
        """
        self.db = db
        self.hasher = hasher

    def _get_model(self, user_id: str) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if not model:
            raise UserNotFoundError(user_id)
        return model

    def _commit_email_change(self, email: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(f"Email '{email}' is already registered") from e

    def email_exists(self, email: str) -> bool:
        return (
            self.db.query(UserModel.user_id)
            .filter(UserModel.email == email.lower())
            .first()
            is not None
        )

    def create_user(
        self,
        name: str,
        email: str,
        role: Role,
        password: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User:
        """Create a new user.

        Exactly one of password or password_hash must be given; the latter is
        used when the password was already hashed at verification time.

        Args:
            name: Display name.
            email: Email address; stored lowercase.
            role: User role.
            password: Plain text password.
            password_hash: Pre-computed password hash.

        Returns:
            Created User object.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        if (password is None) == (password_hash is None):
            raise ValueError("Provide exactly one of password or password_hash")

        email = email.strip().lower()
        if self.email_exists(email):
            raise UserAlreadyExistsError(f"Email '{email}' is already registered")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=password_hash or self.hasher.hash(password),
            role=role,
        )

        # Two concurrent registrations can both pass the check above; the
        # unique constraint on email catches the loser
        try:
            model = user_to_model(user)
            self.db.add(model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(f"Email '{email}' is already registered") from e

        logger.info("Created user %s with role %s", user.user_id, user.role.value)
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email.

        Args:
            email: Email to look up (case-insensitive).

        Returns:
            User object if found, None otherwise.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the email/password pair is valid, else None."""
        user = self.get_user_by_email(email)
        if user is None:
            return None
        if not self.hasher.verify(password, user.password_hash):
            return None
        return user

    def list_users(self, role: Optional[Role] = None) -> List[User]:
        """List users, optionally filtered by role.

        Returns:
            List of User objects, oldest first.
        """
        query = self.db.query(UserModel)
        if role:
            query = query.filter(UserModel.role == role.value)
        return [model_to_user(m) for m in query.order_by(UserModel.created_at).all()]

    def count_admins(self) -> int:
        return self.db.query(UserModel).filter(UserModel.role == Role.ADMIN.value).count()

    def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """Update name, email and/or password of a user.

        Args:
            user_id: The user to update.
            name: New display name.
            email: New email address.
            password: New plain text password.

        Returns:
            Updated User object.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserAlreadyExistsError: If the new email belongs to another user.
        """
        model = self._get_model(user_id)
        if email is not None:
            email = email.strip().lower()
            if email != model.email and self.email_exists(email):
                raise UserAlreadyExistsError(f"Email '{email}' is already registered")
            model.email = email
        if name is not None:
            model.name = name.strip()
        if password is not None:
            model.password_hash = self.hasher.hash(password)
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self._commit_email_change(model.email)
        self.db.refresh(model)
        logger.info("Updated user %s", user_id)
        return model_to_user(model)

    def promote_user(self, user_id: str) -> User:
        """Move a user one step up the role ladder (student -> teacher -> admin).

        Raises:
            UserNotFoundError: If the user does not exist.
            RoleChangeError: If the user is already an admin.
        """
        model = self._get_model(user_id)
        index = ROLE_LADDER.index(Role(model.role))
        if index == len(ROLE_LADDER) - 1:
            raise RoleChangeError("User already has the highest role")
        return self._set_role(model, ROLE_LADDER[index + 1])

    def demote_user(self, user_id: str) -> User:
        """Move a user one step down the role ladder (admin -> teacher -> student).

        Raises:
            UserNotFoundError: If the user does not exist.
            RoleChangeError: If the user is a student or the last admin.
        """
        model = self._get_model(user_id)
        role = Role(model.role)
        index = ROLE_LADDER.index(role)
        if index == 0:
            raise RoleChangeError("User already has the lowest role")
        if role == Role.ADMIN and self.count_admins() <= 1:
            raise RoleChangeError("At least one admin must remain")
        return self._set_role(model, ROLE_LADDER[index - 1])

    def _set_role(self, model: UserModel, role: Role) -> User:
        previous = model.role
        model.role = role.value
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Changed role of user %s: %s -> %s", model.user_id, previous, role.value)
        return model_to_user(model)

    def delete_user(self, user_id: str) -> None:
        """Delete a user together with their submissions and attempts.

        Quizzes authored by the user are kept and detached from them.

        Raises:
            UserNotFoundError: If the user does not exist.
            RoleChangeError: If the user is the last admin.
        """
        model = self._get_model(user_id)
        if model.role == Role.ADMIN.value and self.count_admins() <= 1:
            raise RoleChangeError("At least one admin must remain")

        # Attempts reference submissions, so they go first
        self.db.query(QuizAttemptModel).filter(
            QuizAttemptModel.student_id == user_id
        ).delete(synchronize_session=False)
        self.db.query(SubmissionModel).filter(
            SubmissionModel.student_id == user_id
        ).delete(synchronize_session=False)
        self.db.query(QuizModel).filter(QuizModel.created_by == user_id).update(
            {QuizModel.created_by: None}, synchronize_session=False
        )
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted user %s", user_id)
