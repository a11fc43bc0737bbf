"""Mailing-list subscriptions."""

import logging
from datetime import datetime

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quiz_arena.models.subscriber import SubscriberModel

logger = logging.getLogger(__name__)


class AlreadySubscribedError(Exception):
    """Exception raised when an email is already on the mailing list."""

    pass


class SubscriptionManager:
    def __init__(self, db: Session):
        self.db = db

    def subscribe(self, email: str) -> SubscriberModel:
        email = email.strip().lower()
        existing = (
            self.db.query(SubscriberModel)
            .filter(SubscriberModel.email == email)
            .first()
        )
        if existing:
            raise AlreadySubscribedError(f"Email '{email}' is already subscribed")

        model = SubscriberModel(email=email, created_at=datetime.now(pytz.utc).isoformat())
        try:
            self.db.add(model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AlreadySubscribedError(f"Email '{email}' is already subscribed") from e
        logger.info("New mailing-list subscriber: %s", email)
        return model
