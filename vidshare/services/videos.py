import logging
import math
import random

from sqlalchemy import and_, or_, func
from sqlalchemy.orm import Session

from vidshare.db import escape_like
from vidshare.errors import Forbidden, NotFound, ValidationError
from vidshare.models.account import Account, Role
from vidshare.models.video import Video, join_csv, split_csv
from vidshare.services import engagement
from vidshare.services.storage import HostedAsset, MediaHost
from vidshare.services.tokens import Principal

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
SEARCH_PAGE_SIZE = 10


def show_count(number: int) -> str:
    """Compact display form: 1500 -> "1.5K", 2000000 -> "2M"."""
    for divisor, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if number >= divisor:
            text = str(number / divisor)
            if text.endswith(".0"):
                text = text[:-2]
            return f"{text}{suffix}"
    return str(number)


def _as_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_csv(value)
    return [str(item).strip() for item in value if str(item).strip()]


def _scoped(query, owner_id: str | None):
    if owner_id:
        query = query.filter(Video.creator_id == owner_id)
    return query


def create(db: Session, creator: Principal, metadata: dict, asset: HostedAsset) -> Video:
    if creator.role is not Role.CREATOR:
        raise Forbidden("Access denied. Only creators can upload videos.")
    account = db.get(Account, creator.subject_id)
    if account is None or account.role != Role.CREATOR.value:
        raise Forbidden("Access denied. Only creators can upload videos.")

    title = (metadata.get("title") or "").strip()
    if not title:
        raise ValidationError("title is required")

    video = Video(
        title=title,
        description=(metadata.get("description") or "").strip() or None,
        tags=join_csv(_as_list(metadata.get("tags"))),
        hashtags=join_csv(_as_list(metadata.get("hashtags"))),
        url=asset.url,
        public_id=asset.public_id,
        creator_id=account.id,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    logger.info("creator %s uploaded video %s", account.id, video.id)
    return video


def _owned_video(db: Session, video_id: str, caller: Principal, action: str) -> Video:
    video = db.get(Video, video_id)
    if video is None:
        raise NotFound("Video not found")
    if video.creator_id != caller.subject_id:
        raise Forbidden(f"Unauthorized to {action} this video")
    return video


def update(db: Session, video_id: str, caller: Principal, changes: dict) -> Video:
    video = _owned_video(db, video_id, caller, "update")
    if changes.get("title"):
        video.title = changes["title"].strip() or video.title
    if "description" in changes:
        video.description = (changes["description"] or "").strip() or None
    if changes.get("tags") is not None:
        video.tags = join_csv(_as_list(changes["tags"]))
    if changes.get("hashtags") is not None:
        video.hashtags = join_csv(_as_list(changes["hashtags"]))
    db.commit()
    db.refresh(video)
    return video


def delete(db: Session, video_id: str, caller: Principal, media_host: MediaHost | None = None) -> None:
    """Remove the record and its hosted asset.

    Votes and comment threads keyed by this video are left in place.
    """
    video = _owned_video(db, video_id, caller, "delete")
    public_id = video.public_id
    db.delete(video)
    db.commit()
    logger.info("creator %s deleted video %s", caller.subject_id, video_id)
    if media_host is not None:
        try:
            media_host.delete(public_id)
        except Exception:
            logger.warning("could not remove hosted asset %s", public_id, exc_info=True)


def _neighbours(db: Session, video: Video, owner_id: str | None) -> tuple[str | None, str | None]:
    after = or_(
        Video.created_at > video.created_at,
        and_(Video.created_at == video.created_at, Video.id > video.id),
    )
    before = or_(
        Video.created_at < video.created_at,
        and_(Video.created_at == video.created_at, Video.id < video.id),
    )
    next_row = (
        _scoped(db.query(Video.id), owner_id)
        .filter(after)
        .order_by(Video.created_at.asc(), Video.id.asc())
        .first()
    )
    prev_row = (
        _scoped(db.query(Video.id), owner_id)
        .filter(before)
        .order_by(Video.created_at.desc(), Video.id.desc())
        .first()
    )
    return (next_row[0] if next_row else None, prev_row[0] if prev_row else None)


def detail(db: Session, video: Video, owner_id: str | None = None, viewer_id: str | None = None) -> dict:
    next_id, prev_id = _neighbours(db, video, owner_id)
    likes, dislikes = engagement.vote_counts(db, video.id)
    own_vote = engagement.viewer_vote(db, video.id, viewer_id)
    return {
        "video": video,
        "next_id": next_id,
        "prev_id": prev_id,
        "likes": show_count(likes),
        "dislikes": show_count(dislikes),
        "like_count": likes,
        "dislike_count": dislikes,
        "is_like": own_vote is engagement.VoteValue.LIKE,
        "is_dislike": own_vote is engagement.VoteValue.DISLIKE,
        "comments": engagement.list_comments(db, video.id),
    }


def get_by_id(db: Session, video_id: str, viewer_id: str | None = None) -> Video:
    video = _scoped(db.query(Video), viewer_id).filter(Video.id == video_id).first()
    if video is None:
        raise NotFound("Video not found")
    return video


def get_random(db: Session, scope_owner_id: str | None = None) -> Video:
    # count + random offset walks the table; fine for modest collections.
    query = _scoped(db.query(Video), scope_owner_id)
    total = query.count()
    if total == 0:
        raise NotFound("No videos available")
    offset = random.randrange(total)
    return query.order_by(Video.created_at.asc(), Video.id.asc()).offset(offset).limit(1).one()


def list_paged(db: Session, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> dict:
    safe_page = max(1, page)
    safe_size = max(1, min(page_size, MAX_PAGE_SIZE))
    total = db.query(func.count(Video.id)).scalar() or 0
    videos = (
        db.query(Video)
        .order_by(Video.created_at.desc(), Video.id.desc())
        .offset((safe_page - 1) * safe_size)
        .limit(safe_size)
        .all()
    )
    return {
        "videos": videos,
        "pagination": {
            "current_page": safe_page,
            "total_pages": math.ceil(total / safe_size),
            "total_videos": total,
            "per_page": safe_size,
        },
    }


def search(db: Session, term: str | None, page: int = 1) -> list[Video]:
    term = (term or "").strip()
    if not term:
        raise ValidationError("Search query is required")
    keyword = f"%{escape_like(term.lower())}%"
    safe_page = max(1, page)
    return (
        db.query(Video)
        .filter(
            func.lower(Video.title).like(keyword, escape="\\")
            | func.lower(Video.tags).like(keyword, escape="\\")
            | func.lower(Video.hashtags).like(keyword, escape="\\")
        )
        .order_by(Video.created_at.desc(), Video.id.desc())
        .offset((safe_page - 1) * SEARCH_PAGE_SIZE)
        .limit(SEARCH_PAGE_SIZE)
        .all()
    )
