import io
import os
from dataclasses import replace

import pytest
from fastapi import UploadFile

from vidshare.errors import ValidationError
from vidshare.services.storage import (
    LocalMediaHost,
    MediaHost,
    S3MediaHost,
    build_media_host,
    discard,
    stage_upload,
)


class RecordingS3Client:
    def __init__(self) -> None:
        self.uploaded: list[tuple] = []
        self.deleted: list[str] = []

    def upload_file(self, path, bucket, key, ExtraArgs=None):
        self.uploaded.append((bucket, key, ExtraArgs))

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)


def test_build_media_host_picks_backend(settings):
    local = build_media_host(settings)
    assert isinstance(local, LocalMediaHost)
    assert isinstance(local, MediaHost)

    remote = build_media_host(replace(settings, s3_bucket="clips", aws_region="eu-west-1"))
    assert isinstance(remote, S3MediaHost)
    assert isinstance(remote, MediaHost)


def test_s3_host_keys_and_urls(tmp_path):
    source = tmp_path / "clip.MP4"
    source.write_bytes(b"data")
    client = RecordingS3Client()
    host = S3MediaHost("clips", "eu-west-1", client=client)

    asset = host.upload(str(source), "video/mp4")
    assert asset.public_id.startswith("videos/") and asset.public_id.endswith(".mp4")
    assert asset.url == f"https://clips.s3.eu-west-1.amazonaws.com/{asset.public_id}"
    assert client.uploaded == [("clips", asset.public_id, {"ContentType": "video/mp4"})]

    host.delete(asset.public_id)
    assert client.deleted == [asset.public_id]


def test_stage_upload_enforces_size_limit():
    upload = UploadFile(file=io.BytesIO(b"x" * 2048), filename="big.mp4")
    with pytest.raises(ValidationError):
        stage_upload(upload, max_bytes=1024)


def test_stage_upload_rejects_empty_file():
    with pytest.raises(ValidationError):
        stage_upload(UploadFile(file=io.BytesIO(b""), filename="empty.webm"), max_bytes=1024)


def test_stage_upload_returns_temporary_copy():
    path, size = stage_upload(UploadFile(file=io.BytesIO(b"abc"), filename="a.mov"), max_bytes=1024)
    try:
        assert size == 3
        assert path.endswith(".mov")
        with open(path, "rb") as f:
            assert f.read() == b"abc"
    finally:
        discard(path)
    assert not os.path.exists(path)
