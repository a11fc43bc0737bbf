"""Email verification for registrations.

A registration can be confirmed by email: the account data is parked in a
pending record with a short-lived numeric code, and the account is created
only when that code comes back.
"""

import logging
import secrets
from datetime import datetime, timedelta

import pytz
from sqlalchemy.orm import Session

from quiz_arena.config import VERIFICATION_CODE_LENGTH, VERIFICATION_CODE_TTL_MINUTES
from quiz_arena.core.exceptions import VerificationError
from quiz_arena.models.verification_code import VerificationCodeModel
from quiz_arena.schemas.user import Role, User
from quiz_arena.utils.mailer import Mailer
from quiz_arena.utils.user_manager import UserAlreadyExistsError, UserManager

logger = logging.getLogger(__name__)


def generate_code(length: int = VERIFICATION_CODE_LENGTH) -> str:
    return f"{secrets.randbelow(10 ** length):0{length}d}"


class VerificationManager:
    """Manages pending registrations and their verification codes."""

    def __init__(
        self,
        db: Session,
        user_manager: UserManager,
        mailer: Mailer,
        ttl_minutes: int = VERIFICATION_CODE_TTL_MINUTES,
    ):
        self.db = db
        self.user_manager = user_manager
        self.mailer = mailer
        self.ttl_minutes = ttl_minutes

    def purge_expired(self) -> int:
        """Delete pending registrations whose code has expired.

        Returns:
            Number of deleted records.
        """
        now = datetime.now(pytz.utc).isoformat()
        deleted = (
            self.db.query(VerificationCodeModel)
            .filter(VerificationCodeModel.expires_at < now)
            .delete(synchronize_session=False)
        )
        if deleted:
            self.db.commit()
            logger.info("Purged %d expired verification codes", deleted)
        return deleted

    def _get_pending(self, email: str) -> VerificationCodeModel:
        self.purge_expired()
        return (
            self.db.query(VerificationCodeModel)
            .filter(VerificationCodeModel.email == email)
            .first()
        )

    def _issue(self, model: VerificationCodeModel) -> None:
        now = datetime.now(pytz.utc)
        model.code = generate_code()
        model.created_at = now.isoformat()
        model.expires_at = (now + timedelta(minutes=self.ttl_minutes)).isoformat()
        self.db.commit()
        # Sent after commit so a delivered code always exists in storage
        self.mailer.send_verification_code(model.email, model.name, model.code, self.ttl_minutes)
        logger.info("Issued verification code for %s", model.email)

    def request_code(self, name: str, email: str, password: str, role: Role) -> None:
        """Park a registration and email its verification code.

        Any earlier pending registration for the same email is replaced.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
            MailDeliveryError: If the code could not be emailed.
        """
        email = email.strip().lower()
        if self.user_manager.email_exists(email):
            raise UserAlreadyExistsError(f"Email '{email}' is already registered")

        model = self._get_pending(email)
        if model is None:
            model = VerificationCodeModel(email=email)
            self.db.add(model)
        model.name = name.strip()
        model.password_hash = self.user_manager.hasher.hash(password)
        model.role = role.value
        self._issue(model)

    def resend_code(self, email: str) -> None:
        """Issue a fresh code for an existing pending registration.

        Raises:
            VerificationError: If there is no pending registration.
            MailDeliveryError: If the code could not be emailed.
        """
        model = self._get_pending(email.strip().lower())
        if model is None:
            raise VerificationError("No pending registration for this email")
        self._issue(model)

    def verify_and_register(self, email: str, code: str) -> User:
        """Create the pending account if the code matches.

        Raises:
            VerificationError: If the code is wrong, expired or unknown.
            UserAlreadyExistsError: If the email got registered meanwhile.
        """
        email = email.strip().lower()
        model = self._get_pending(email)
        if model is None or not secrets.compare_digest(model.code.encode(), code.encode()):
            raise VerificationError("Invalid or expired verification code")

        user = self.user_manager.create_user(
            name=model.name,
            email=email,
            role=Role(model.role),
            password_hash=model.password_hash,
        )
        self.db.delete(model)
        self.db.commit()
        logger.info("Verified registration for %s", email)
        return user
