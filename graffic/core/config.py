from __future__ import annotations

import os
import socket
from pydantic import BaseModel


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./graffic.db")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Object store (S3 or any S3-compatible endpoint)
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    S3_ENDPOINT_URL: str | None = os.getenv("S3_ENDPOINT_URL") or None
    S3_PUBLIC_URL: str | None = os.getenv("S3_PUBLIC_URL") or None
    DEFAULT_BUCKET: str = os.getenv("DEFAULT_BUCKET", "images.graffic.local")
    DEFAULT_ACL: str = os.getenv("DEFAULT_ACL", "public-read")

    # Queues
    PROCESS_QUEUE: str = os.getenv("PROCESS_QUEUE", "images")
    UPLOAD_QUEUE: str = os.getenv("UPLOAD_QUEUE", "images-upload")
    QUEUE_VISIBILITY_TIMEOUT: int = int(os.getenv("QUEUE_VISIBILITY_TIMEOUT", "300"))

    # Lifecycle defaults
    STAGING_DIR: str = os.getenv("STAGING_DIR", "tmp/images")
    DEFAULT_FORMAT: str = os.getenv("DEFAULT_FORMAT", "png")
    USE_QUEUE: bool = _flag("USE_QUEUE", "true")

    # Worker
    WORKER_HOSTNAME: str = os.getenv("WORKER_HOSTNAME", socket.gethostname())
    WORKER_POLL_SECONDS: int = int(os.getenv("WORKER_POLL_SECONDS", "5"))

    DEBUG: bool = _flag("DEBUG", "false")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")


settings = Settings()
