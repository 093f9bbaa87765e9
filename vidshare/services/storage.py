import logging
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import boto3
from fastapi import Depends, UploadFile

from vidshare.config import Settings, get_settings
from vidshare.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".webm", ".mkv", ".mov"}
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class HostedAsset:
    url: str
    public_id: str


@runtime_checkable
class MediaHost(Protocol):
    def upload(self, path: str, content_type: str | None = None) -> HostedAsset: ...

    def delete(self, public_id: str) -> None: ...


def _validate_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename.lower())
    if ext not in ALLOWED_VIDEO_EXTENSIONS:
        raise ValidationError("Unsupported video format. Use MP4/WEBM/MKV/MOV.")
    return ext


def stage_upload(file: UploadFile, max_bytes: int) -> tuple[str, int]:
    """Copy an upload into a local temporary file and return (path, size).

    The caller owns the temporary file and must remove it.
    """
    filename = os.path.basename((file.filename or "").strip())
    if not filename:
        raise ValidationError("No video file uploaded")
    ext = _validate_extension(filename)

    size = 0
    handle = tempfile.NamedTemporaryFile(prefix="vidshare-", suffix=ext, delete=False)
    try:
        with handle:
            while True:
                chunk = file.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(f"Video exceeds the {max_bytes // (1024 * 1024)} MB limit.")
                handle.write(chunk)
        if size == 0:
            raise ValidationError("Uploaded file is empty.")
    except Exception:
        discard(handle.name)
        raise
    return handle.name, size


def discard(path: str | None) -> None:
    if path and os.path.exists(path):
        os.remove(path)


class LocalMediaHost:
    """Stores assets on local disk; they are served by the /storage mount."""

    def __init__(self, media_dir: str, base_url: str) -> None:
        self.media_dir = media_dir
        self.base_url = base_url.rstrip("/")

    def ensure_storage(self) -> None:
        os.makedirs(self.media_dir, exist_ok=True)

    def upload(self, path: str, content_type: str | None = None) -> HostedAsset:
        self.ensure_storage()
        _, ext = os.path.splitext(path)
        public_id = f"{uuid.uuid4().hex}{ext.lower()}"
        shutil.copyfile(path, os.path.join(self.media_dir, public_id))
        return HostedAsset(url=f"{self.base_url}/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        target = os.path.join(self.media_dir, os.path.basename(public_id))
        if os.path.exists(target):
            os.remove(target)


class S3MediaHost:
    def __init__(self, bucket: str, region: str, endpoint_url: str | None = None, client=None) -> None:
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url or None
        self.client = client or boto3.client("s3", region_name=region, endpoint_url=self.endpoint_url)

    def _url_for(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, path: str, content_type: str | None = None) -> HostedAsset:
        _, ext = os.path.splitext(path)
        key = f"videos/{uuid.uuid4().hex}{ext.lower()}"
        extra = {"ContentType": content_type} if content_type else None
        self.client.upload_file(path, self.bucket, key, ExtraArgs=extra)
        return HostedAsset(url=self._url_for(key), public_id=key)

    def delete(self, public_id: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=public_id)


def build_media_host(settings: Settings) -> MediaHost:
    if settings.s3_bucket:
        return S3MediaHost(settings.s3_bucket, settings.aws_region, settings.aws_endpoint_url)
    return LocalMediaHost(settings.media_dir, settings.media_base_url)


def get_media_host(settings: Settings = Depends(get_settings)) -> MediaHost:
    return build_media_host(settings)
