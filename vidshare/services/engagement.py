"""Votes, comment threads and the per-creator like aggregation.

Counts are never stored: every read derives them from the vote table.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidshare.errors import NotFound, ValidationError
from vidshare.models.account import utcnow
from vidshare.models.engagement import CommentEntry, CommentThread, Vote, VoteValue
from vidshare.models.video import Video

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteStats:
    likes: int
    dislikes: int
    is_like: bool
    is_dislike: bool


def parse_vote_value(raw: str | None) -> VoteValue:
    try:
        return VoteValue((raw or "").strip().lower())
    except ValueError as exc:
        raise ValidationError("Invalid action type") from exc


def _require_video(db: Session, video_id: str) -> None:
    if db.get(Video, video_id) is None:
        raise NotFound("Video not found")


def _dialect_insert(db: Session):
    name = db.get_bind().dialect.name
    if name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        return None
    return insert


def _upsert_vote(db: Session, video_id: str, user_id: str, value: VoteValue) -> None:
    now = utcnow()
    insert = _dialect_insert(db)
    if insert is not None:
        stmt = insert(Vote).values(
            id=str(uuid.uuid4()),
            video_id=video_id,
            user_id=user_id,
            value=value.value,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Vote.video_id, Vote.user_id],
            set_={"value": value.value, "created_at": now},
        )
        db.execute(stmt)
        db.commit()
        return

    # Generic path: read-then-write, with the unique constraint as the backstop.
    existing = db.query(Vote).filter(Vote.video_id == video_id, Vote.user_id == user_id).first()
    if existing is None:
        db.add(Vote(video_id=video_id, user_id=user_id, value=value.value, created_at=now))
        try:
            db.commit()
            return
        except IntegrityError:
            db.rollback()
            existing = db.query(Vote).filter(Vote.video_id == video_id, Vote.user_id == user_id).one()
    existing.value = value.value
    existing.created_at = now
    db.commit()


def vote_counts(db: Session, video_id: str) -> tuple[int, int]:
    likes, dislikes = (
        db.query(
            func.coalesce(func.sum(case((Vote.value == VoteValue.LIKE.value, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Vote.value == VoteValue.DISLIKE.value, 1), else_=0)), 0),
        )
        .filter(Vote.video_id == video_id)
        .one()
    )
    return int(likes), int(dislikes)


def viewer_vote(db: Session, video_id: str, user_id: str | None) -> VoteValue | None:
    if not user_id:
        return None
    row = db.query(Vote.value).filter(Vote.video_id == video_id, Vote.user_id == user_id).first()
    return VoteValue(row[0]) if row else None


def cast_vote(db: Session, video_id: str, user_id: str, value: VoteValue | str) -> VoteStats:
    value = parse_vote_value(value.value if isinstance(value, VoteValue) else value)
    _require_video(db, video_id)
    _upsert_vote(db, video_id, user_id, value)
    likes, dislikes = vote_counts(db, video_id)
    logger.info("user %s %sd video %s", user_id, value.value, video_id)
    return VoteStats(
        likes=likes,
        dislikes=dislikes,
        is_like=value is VoteValue.LIKE,
        is_dislike=value is VoteValue.DISLIKE,
    )


def _thread_for(db: Session, video_id: str) -> CommentThread:
    thread = db.query(CommentThread).filter(CommentThread.video_id == video_id).first()
    if thread is not None:
        return thread

    insert = _dialect_insert(db)
    if insert is not None:
        stmt = insert(CommentThread).values(
            id=str(uuid.uuid4()), video_id=video_id, created_at=utcnow()
        ).on_conflict_do_nothing(index_elements=[CommentThread.video_id])
        db.execute(stmt)
        db.commit()
    else:
        db.add(CommentThread(video_id=video_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
    return db.query(CommentThread).filter(CommentThread.video_id == video_id).one()


def append_comment(db: Session, video_id: str, user_id: str, text: str | None) -> CommentEntry:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment text is required")
    _require_video(db, video_id)
    thread = _thread_for(db, video_id)
    entry = CommentEntry(thread_id=thread.id, author_id=user_id, text=text)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def list_comments(db: Session, video_id: str) -> list[CommentEntry]:
    return (
        db.query(CommentEntry)
        .join(CommentThread, CommentEntry.thread_id == CommentThread.id)
        .filter(CommentThread.video_id == video_id)
        .order_by(CommentEntry.id.asc())
        .all()
    )


def aggregate_for_creator(db: Session, creator_id: str) -> list[dict]:
    like_count = func.coalesce(
        func.sum(case((Vote.value == VoteValue.LIKE.value, 1), else_=0)), 0
    ).label("like_count")
    rows = (
        db.query(
            Video.id,
            Video.title,
            Video.url,
            Video.description,
            Video.public_id,
            Video.created_at,
            like_count,
        )
        .outerjoin(Vote, Vote.video_id == Video.id)
        .filter(Video.creator_id == creator_id)
        .group_by(
            Video.id,
            Video.title,
            Video.url,
            Video.description,
            Video.public_id,
            Video.created_at,
        )
        .order_by(Video.created_at.desc())
        .all()
    )
    return [
        {
            "id": row.id,
            "title": row.title,
            "url": row.url,
            "description": row.description,
            "public_id": row.public_id,
            "created_at": row.created_at,
            "like_count": int(row.like_count),
        }
        for row in rows
    ]
