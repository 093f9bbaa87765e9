import base64
import os
from sqlalchemy.orm import Session
from vidshare.config import get_settings
from vidshare.db import SessionLocal, init_db
from vidshare.models.account import Role
from vidshare.services import accounts, engagement, videos
from vidshare.services.storage import LocalMediaHost, discard
from vidshare.services.tokens import Principal

# Smallest valid MP4 container header; enough for a placeholder asset.
PLACEHOLDER_MP4 = base64.b64decode("AAAAIGZ0eXBpc29tAAACAGlzb21pc28yYXZjMW1wNDEAAAAIZnJlZQ==")


def seed(db: Session | None = None, media_host: LocalMediaHost | None = None) -> dict:
    settings = get_settings()
    own_session = db is None
    if own_session:
        init_db()
        db = SessionLocal()
    media_host = media_host or LocalMediaHost(settings.media_dir, settings.media_base_url)
    try:
        creator = accounts.create_account(db, "demo_creator", "creator@example.com", "creator-pass", Role.CREATOR)
        viewer = accounts.register_consumer(db, "demo_viewer", "viewer@example.com", "viewer-pass")
        principal = Principal(subject_id=creator.id, role=Role.CREATOR)

        media_host.ensure_storage()
        created = []
        for title, tags in [("Welcome to vidshare", "intro,welcome"), ("Behind the scenes", "bts")]:
            staging = os.path.join(media_host.media_dir, "seed-staging.mp4")
            with open(staging, "wb") as f:
                f.write(PLACEHOLDER_MP4)
            try:
                asset = media_host.upload(staging, "video/mp4")
            finally:
                discard(staging)
            created.append(
                videos.create(db, principal, {"title": title, "tags": tags, "hashtags": "#demo"}, asset)
            )

        engagement.cast_vote(db, created[0].id, viewer.id, "like")
        engagement.append_comment(db, created[0].id, viewer.id, "First!")
        return {"creator": creator.id, "viewer": viewer.id, "videos": [item.id for item in created]}
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    print(seed())
