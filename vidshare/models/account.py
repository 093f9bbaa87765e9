import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, String, DateTime
from vidshare.db import Base


class Role(str, Enum):
    ADMIN = "admin"
    CREATOR = "creator"
    CONSUMER = "consumer"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Account(Base):
    __tablename__ = "account"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    # Only creator/consumer are stored; admin is the configured singleton.
    role = Column(String(16), nullable=False, default=Role.CONSUMER.value)
    created_at = Column(DateTime, default=utcnow)
