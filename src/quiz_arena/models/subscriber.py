from sqlalchemy import Column, String
from .base import Base


class SubscriberModel(Base):
    __tablename__ = "subscribers"

    email = Column(String, primary_key=True, index=True)  # lowercase
    created_at = Column(String, nullable=False)
