"""Password hashing.

This module provides the hashing capability used for both account passwords
and quiz access passwords. Callers receive a PasswordHasher instance through
dependency injection so the algorithm can be swapped without touching them.
"""

import logging
from abc import ABC, abstractmethod

import bcrypt

from quiz_arena.config import BCRYPT_ROUNDS

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


class PasswordHasher(ABC):
    """Abstract base class for password hashing strategies."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a plain text password.

        Args:
            password: Plain text password.

        Returns:
            Encoded hash string suitable for storage.
        """
        pass

    @abstractmethod
    def verify(self, password: str, hashed: str) -> bool:
        """Check a plain text password against a stored hash.

        Args:
            password: Plain text password to verify.
            hashed: Hash string produced by hash().

        Returns:
            True if the password matches, False otherwise.
        """
        pass


class BcryptPasswordHasher(PasswordHasher):
    """Hashes passwords with bcrypt."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    @staticmethod
    def _to_bytes(password: str) -> bytes:
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            logger.warning(
                "Password exceeds %d bytes (%d bytes), truncating",
                BCRYPT_MAX_BYTES,
                len(password_bytes),
            )
            password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
        return password_bytes

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        # bcrypt.hashpw returns bytes, we need to decode to string
        return bcrypt.hashpw(self._to_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(self._to_bytes(password), hashed.encode("utf-8"))
        except ValueError as e:
            # Malformed hash in storage
            logger.error("Password verification error: %s", e)
            return False
