import pytest

from vidshare.errors import NotFound, ValidationError
from vidshare.models.account import Role
from vidshare.models.engagement import CommentThread, Vote
from vidshare.services import engagement

from conftest import auth


@pytest.fixture
def video(make_account, make_video):
    creator = make_account("maker", Role.CREATOR)
    return make_video(creator, "launch")


def test_second_vote_overwrites_first(db, make_account, video):
    fan = make_account("fan")
    first = engagement.cast_vote(db, video.id, fan.id, "like")
    assert (first.likes, first.dislikes, first.is_like, first.is_dislike) == (1, 0, True, False)

    second = engagement.cast_vote(db, video.id, fan.id, "dislike")
    assert (second.likes, second.dislikes, second.is_like, second.is_dislike) == (0, 1, False, True)

    votes = db.query(Vote).filter(Vote.video_id == video.id, Vote.user_id == fan.id).all()
    assert len(votes) == 1
    assert votes[0].value == "dislike"


def test_repeated_identical_vote_is_idempotent(db, make_account, video):
    fan = make_account("fan")
    for _ in range(3):
        stats = engagement.cast_vote(db, video.id, fan.id, "like")
    assert stats.likes == 1
    assert db.query(Vote).count() == 1


def test_counts_span_users(db, make_account, video):
    fans = [make_account(f"fan{i}") for i in range(4)]
    for fan in fans[:3]:
        engagement.cast_vote(db, video.id, fan.id, "like")
    stats = engagement.cast_vote(db, video.id, fans[3].id, "dislike")
    assert (stats.likes, stats.dislikes) == (3, 1)
    assert engagement.vote_counts(db, video.id) == (3, 1)


def test_invalid_vote_value(db, make_account, video):
    with pytest.raises(ValidationError):
        engagement.cast_vote(db, video.id, make_account("fan").id, "love")


def test_vote_on_missing_video(db, make_account):
    with pytest.raises(NotFound):
        engagement.cast_vote(db, "missing", make_account("fan").id, "like")


def test_comments_keep_insertion_order(db, make_account, video):
    authors = [make_account("ann"), make_account("ben")]
    texts = [f"comment {i}" for i in range(7)]
    for i, text in enumerate(texts):
        entry = engagement.append_comment(db, video.id, authors[i % 2].id, text)
        assert entry.text == text

    listed = engagement.list_comments(db, video.id)
    assert [entry.text for entry in listed] == texts
    assert [entry.author.username for entry in listed[:2]] == ["ann", "ben"]
    assert db.query(CommentThread).filter(CommentThread.video_id == video.id).count() == 1


def test_empty_comment_rejected(db, make_account, video):
    with pytest.raises(ValidationError):
        engagement.append_comment(db, video.id, make_account("ann").id, "   ")


def test_aggregate_for_creator_counts_only_likes(db, make_account, make_video):
    creator = make_account("maker", Role.CREATOR)
    other = make_account("other", Role.CREATOR)
    mine = make_video(creator, "mine", minutes=1)
    quiet = make_video(creator, "quiet", minutes=2)
    theirs = make_video(other, "theirs", minutes=3)
    fans = [make_account(f"fan{i}") for i in range(3)]
    engagement.cast_vote(db, mine.id, fans[0].id, "like")
    engagement.cast_vote(db, mine.id, fans[1].id, "like")
    engagement.cast_vote(db, mine.id, fans[2].id, "dislike")
    engagement.cast_vote(db, theirs.id, fans[0].id, "like")

    rows = engagement.aggregate_for_creator(db, creator.id)
    assert [(row["title"], row["like_count"]) for row in rows] == [("quiet", 0), ("mine", 2)]
    assert quiet.id in {row["id"] for row in rows}


def test_vote_route_for_any_authenticated_account(client, make_account, session_token, video):
    for username, role in [("viewer", Role.CONSUMER), ("peer", Role.CREATOR)]:
        token = session_token(make_account(username, role))
        response = client.post(
            "/videos/like-dislike",
            json={"videoId": video.id, "type": "like"},
            headers=auth(token),
        )
        assert response.status_code == 201
    body = response.json()
    assert body["success"] == "Video liked successfully"
    assert body["stats"] == {"likes": 2, "dislikes": 0, "is_like": True, "is_dislike": False}


def test_vote_route_requires_token(client, video):
    response = client.post("/videos/like-dislike", json={"video_id": video.id, "type": "like"})
    assert response.status_code == 401


def test_comment_route(client, make_account, session_token, video):
    token = session_token(make_account("viewer"))
    for text in ["one", "two"]:
        response = client.post(
            "/videos/comment",
            json={"video_id": video.id, "comment": text},
            headers=auth(token),
        )
        assert response.status_code == 201
    assert response.json()["comment"]["text"] == "two"
    assert response.json()["comment"]["author"]["username"] == "viewer"

    listed = client.get(f"/videos/{video.id}/comments").json()
    assert [entry["text"] for entry in listed] == ["one", "two"]
