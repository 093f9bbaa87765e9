from datetime import datetime
from pydantic import BaseModel
from vidshare.schemas.account import AccountSummary


class VoteStatsOut(BaseModel):
    likes: int
    dislikes: int
    is_like: bool
    is_dislike: bool


class CommentOut(BaseModel):
    id: int
    author_id: str
    author: AccountSummary | None = None
    text: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CreatorVideoStats(BaseModel):
    id: str
    title: str
    url: str
    description: str | None = None
    public_id: str
    created_at: datetime | None = None
    like_count: int
