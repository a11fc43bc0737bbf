"""Verification code database model.

This module defines the pending-registration record using SQLAlchemy.
"""

from sqlalchemy import Column, String
from .base import Base


class VerificationCodeModel(Base):
    """Pending registration awaiting email confirmation."""

    __tablename__ = "verification_codes"

    email = Column(String, primary_key=True, index=True)  # one pending code per email
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)
    created_at = Column(String, nullable=False)  # ISO format string
    expires_at = Column(String, nullable=False)  # ISO format string
