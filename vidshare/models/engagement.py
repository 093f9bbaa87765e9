import uuid
from enum import Enum
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from vidshare.db import Base
from vidshare.models.account import utcnow


class VoteValue(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


# video_id and account columns carry no foreign key: votes and comments
# outlive a deleted video or a deleted account.
class Vote(Base):
    __tablename__ = "vote"
    __table_args__ = (UniqueConstraint("video_id", "user_id", name="uq_vote_video_user"),)
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    video_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    value = Column(String(8), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class CommentThread(Base):
    __tablename__ = "comment_thread"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    video_id = Column(String(36), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    entries = relationship(
        "CommentEntry",
        order_by="CommentEntry.id",
        back_populates="thread",
    )


class CommentEntry(Base):
    __tablename__ = "comment_entry"
    id = Column(Integer, primary_key=True, autoincrement=True)
    thread_id = Column(String(36), ForeignKey("comment_thread.id"), nullable=False, index=True)
    author_id = Column(String(36), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    thread = relationship("CommentThread", back_populates="entries")
    author = relationship(
        "Account",
        primaryjoin="foreign(CommentEntry.author_id) == Account.id",
        lazy="joined",
        viewonly=True,
    )
