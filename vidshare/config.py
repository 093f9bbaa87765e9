import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache


def _env(name: str, default: str = "") -> str:
    return (os.getenv(f"VIDSHARE_{name}", default) or "").strip()


def _env_flag(name: str, default: str = "0") -> bool:
    return _env(name, default).lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once from the environment."""

    database_url: str = "sqlite:///./vidshare.db"
    session_secret: str = "change-me-session-secret-0123456789"
    invitation_secret: str = "change-me-invitation-secret-0123456789"
    session_ttl: timedelta = timedelta(days=1)
    invitation_ttl: timedelta = timedelta(days=7)
    admin_id: str = "admin"
    admin_email: str = ""
    admin_password: str = ""
    client_url: str = "http://localhost:3000"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""
    smtp_use_tls: bool = True
    media_dir: str = "storage/videos"
    media_base_url: str = "/storage/videos"
    s3_bucket: str = ""
    aws_region: str = "us-east-1"
    aws_endpoint_url: str = ""
    max_video_bytes: int = 250 * 1024 * 1024
    log_level: str = "INFO"
    quiet_access_log: bool = True


def load_settings() -> Settings:
    smtp_user = _env("SMTP_USER")
    try:
        smtp_port = int(_env("SMTP_PORT", "587") or "587")
    except ValueError:
        smtp_port = 587
    return Settings(
        database_url=_env("DATABASE_URL", "sqlite:///./vidshare.db"),
        session_secret=_env("JWT_SECRET", Settings.session_secret),
        invitation_secret=_env("EMAIL_SECRET", Settings.invitation_secret),
        session_ttl=timedelta(hours=int(_env("SESSION_TTL_HOURS", "24"))),
        invitation_ttl=timedelta(days=int(_env("INVITATION_TTL_DAYS", "7"))),
        admin_id=_env("ADMIN_ID", "admin"),
        admin_email=_env("ADMIN_EMAIL").lower(),
        admin_password=_env("ADMIN_PASSWORD"),
        client_url=_env("CLIENT_URL", "http://localhost:3000").rstrip("/"),
        smtp_host=_env("SMTP_HOST"),
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_password=_env("SMTP_PASSWORD"),
        smtp_from=_env("SMTP_FROM", smtp_user),
        smtp_use_tls=_env_flag("SMTP_USE_TLS", "1"),
        media_dir=_env("MEDIA_DIR", "storage/videos"),
        media_base_url=_env("MEDIA_BASE_URL", "/storage/videos").rstrip("/"),
        s3_bucket=_env("S3_BUCKET"),
        aws_region=_env("AWS_REGION", "us-east-1"),
        aws_endpoint_url=_env("AWS_ENDPOINT_URL"),
        max_video_bytes=int(_env("MAX_VIDEO_BYTES", str(250 * 1024 * 1024))),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        quiet_access_log=_env_flag("QUIET_ACCESS_LOG", "1"),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
