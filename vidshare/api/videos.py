import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from vidshare.config import Settings, get_settings
from vidshare.db import get_db
from vidshare.errors import InternalError, Unauthorized, ValidationError
from vidshare.models.account import Role
from vidshare.schemas.engagement import CommentOut, VoteStatsOut
from vidshare.schemas.video import CommentIn, VideoOut, VideoUpdateIn, VoteIn
from vidshare.services import engagement, videos
from vidshare.services.access import optional_principal, require_role
from vidshare.services.storage import MediaHost, discard, get_media_host, stage_upload
from vidshare.services.tokens import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])

creator_only = require_role(Role.CREATOR)
any_account = require_role(allow_any_authenticated=True)


def _detail_out(payload: dict) -> dict:
    return {
        **payload,
        "video": VideoOut.model_validate(payload["video"]),
        "comments": [CommentOut.model_validate(entry) for entry in payload["comments"]],
    }


def _scope_owner(mine: bool, viewer: Principal | None) -> str | None:
    if not mine:
        return None
    if viewer is None:
        raise Unauthorized("Authentication token required")
    return viewer.subject_id


@router.post("/upload", status_code=201)
def upload_video(
    video: UploadFile = File(...),
    title: str = Form(...),
    description: str | None = Form(None),
    tags: str | None = Form(None),
    hashtags: str | None = Form(None),
    principal: Principal = Depends(creator_only),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    media_host: MediaHost = Depends(get_media_host),
):
    if not title.strip():
        raise ValidationError("title is required")
    temp_path = None
    try:
        temp_path, size = stage_upload(video, settings.max_video_bytes)
        try:
            asset = media_host.upload(temp_path, video.content_type)
        except Exception as exc:
            logger.exception("media host rejected upload from %s", principal.subject_id)
            raise InternalError("Video upload failed") from exc
        logger.info("stored %d bytes as %s", size, asset.public_id)
    finally:
        discard(temp_path)

    try:
        record = videos.create(
            db,
            principal,
            {"title": title, "description": description, "tags": tags, "hashtags": hashtags},
            asset,
        )
    except Exception:
        # The record was not stored; drop its hosted copy.
        try:
            media_host.delete(asset.public_id)
        except Exception:
            logger.warning("could not remove orphaned asset %s", asset.public_id, exc_info=True)
        raise
    return {"message": "Video uploaded successfully", "video": VideoOut.model_validate(record)}


@router.get("")
def list_videos(page: int = 1, limit: int = videos.DEFAULT_PAGE_SIZE, db: Session = Depends(get_db)):
    result = videos.list_paged(db, page, limit)
    return {
        "videos": [VideoOut.model_validate(item) for item in result["videos"]],
        "pagination": result["pagination"],
    }


@router.get("/search")
def search_videos(query: str | None = None, page: int = 1, db: Session = Depends(get_db)):
    found = videos.search(db, query, page)
    return {"videos": [VideoOut.model_validate(item) for item in found]}


@router.post("/like-dislike", status_code=201)
def like_or_dislike(
    payload: VoteIn,
    principal: Principal = Depends(any_account),
    db: Session = Depends(get_db),
):
    stats = engagement.cast_vote(db, payload.video_id, principal.subject_id, payload.type)
    action = "liked" if stats.is_like else "disliked"
    return {
        "success": f"Video {action} successfully",
        "stats": VoteStatsOut(**asdict(stats)),
    }


@router.post("/comment", status_code=201)
def add_comment(
    payload: CommentIn,
    principal: Principal = Depends(any_account),
    db: Session = Depends(get_db),
):
    entry = engagement.append_comment(db, payload.video_id, principal.subject_id, payload.comment)
    return {"success": "Comment added successfully", "comment": CommentOut.model_validate(entry)}


@router.get("/random")
def random_video(
    mine: bool = False,
    viewer: Principal | None = Depends(optional_principal),
    db: Session = Depends(get_db),
):
    owner_id = _scope_owner(mine, viewer)
    video = videos.get_random(db, owner_id)
    viewer_id = viewer.subject_id if viewer else None
    return _detail_out(videos.detail(db, video, owner_id, viewer_id))


@router.get("/{video_id}/comments", response_model=list[CommentOut])
def get_comments(video_id: str, db: Session = Depends(get_db)):
    return engagement.list_comments(db, video_id)


@router.get("/{video_id}")
def get_video(
    video_id: str,
    mine: bool = False,
    viewer: Principal | None = Depends(optional_principal),
    db: Session = Depends(get_db),
):
    owner_id = _scope_owner(mine, viewer)
    video = videos.get_by_id(db, video_id, owner_id)
    viewer_id = viewer.subject_id if viewer else None
    return _detail_out(videos.detail(db, video, owner_id, viewer_id))


@router.put("/{video_id}")
def update_video(
    video_id: str,
    payload: VideoUpdateIn,
    principal: Principal = Depends(creator_only),
    db: Session = Depends(get_db),
):
    video = videos.update(db, video_id, principal, payload.model_dump(exclude_unset=True))
    return {"message": "Video updated successfully", "video": VideoOut.model_validate(video)}


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    principal: Principal = Depends(creator_only),
    db: Session = Depends(get_db),
    media_host: MediaHost = Depends(get_media_host),
):
    videos.delete(db, video_id, principal, media_host)
    return {"message": "Video deleted successfully"}
