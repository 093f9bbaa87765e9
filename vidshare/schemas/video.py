from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field, field_validator
from vidshare.models.video import split_csv
from vidshare.schemas.account import AccountSummary


class VideoOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    tags: list[str] = []
    hashtags: list[str] = []
    url: str
    public_id: str
    creator_id: str
    creator: AccountSummary | None = None
    created_at: datetime | None = None

    @field_validator("tags", "hashtags", mode="before")
    @classmethod
    def _split(cls, value):
        if isinstance(value, str) or value is None:
            return split_csv(value)
        return value

    class Config:
        from_attributes = True


class VideoUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] | str | None = None
    hashtags: list[str] | str | None = None


class VoteIn(BaseModel):
    video_id: str = Field(..., validation_alias=AliasChoices("video_id", "videoId"))
    type: str


class CommentIn(BaseModel):
    video_id: str = Field(..., validation_alias=AliasChoices("video_id", "videoId"))
    comment: str
