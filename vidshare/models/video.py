import uuid
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from vidshare.db import Base
from vidshare.models.account import utcnow


def split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def join_csv(values: list[str] | None) -> str:
    return ",".join(item.strip() for item in (values or []) if item and item.strip())


class Video(Base):
    __tablename__ = "video"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(Text, nullable=False, default="")
    hashtags = Column(Text, nullable=False, default="")
    url = Column(String(1024), nullable=False)
    public_id = Column(String(512), nullable=False)
    # No foreign key: videos stay listed after their creator account is deleted.
    creator_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    creator = relationship(
        "Account",
        primaryjoin="foreign(Video.creator_id) == Account.id",
        lazy="joined",
        viewonly=True,
    )

    @property
    def tag_list(self) -> list[str]:
        return split_csv(self.tags)

    @property
    def hashtag_list(self) -> list[str]:
        return split_csv(self.hashtags)
