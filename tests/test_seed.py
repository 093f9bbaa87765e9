import os

from vidshare.models.video import Video
from vidshare.seed import seed
from vidshare.services import engagement


def test_seed_creates_demo_content(db, media_host):
    result = seed(db, media_host)

    assert len(result["videos"]) == 2
    stored = db.query(Video).filter(Video.creator_id == result["creator"]).all()
    assert {video.id for video in stored} == set(result["videos"])
    assert sorted(os.listdir(media_host.media_dir)) == sorted(video.public_id for video in stored)

    first = result["videos"][0]
    assert engagement.vote_counts(db, first) == (1, 0)
    comments = engagement.list_comments(db, first)
    assert [entry.text for entry in comments] == ["First!"]
    assert comments[0].author_id == result["viewer"]
