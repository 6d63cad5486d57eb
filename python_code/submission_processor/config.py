"""Environment-driven configuration, read once per Lambda container."""

import os
from dataclasses import dataclass
from typing import Optional


def get_env_var(name: str, default: Optional[str] = None) -> str:
    """
    Gets an environment variable or raises a ValueError for fast-failure.

    Args:
        name: The name of the environment variable.
        default: An optional default value. If not provided, the variable is required.

    Returns:
        The value of the environment variable.

    Raises:
        ValueError: If the required environment variable is not set.
    """
    value = os.environ.get(name, default)
    if value is None:
        raise ValueError(f"FATAL: Environment variable '{name}' is not set.")
    return value


@dataclass(frozen=True)
class Settings:
    submissions_table: str = "submissions"
    video_bucket: str = "demo-project-videos"
    thumbnail_bucket: str = "demo-project-thumbnails"
    thumbnail_interval_seconds: int = 10
    max_workers: int = 16
    environment: str = "dev"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        interval = int(get_env_var("THUMBNAIL_INTERVAL_SECONDS", "10"))
        max_workers = int(get_env_var("MAX_WORKERS", "16"))
        if interval <= 0:
            raise ValueError("FATAL: THUMBNAIL_INTERVAL_SECONDS must be positive.")
        if max_workers <= 0:
            raise ValueError("FATAL: MAX_WORKERS must be positive.")
        return cls(
            submissions_table=get_env_var("SUBMISSIONS_TABLE", "submissions"),
            video_bucket=get_env_var("VIDEO_BUCKET", "demo-project-videos"),
            thumbnail_bucket=get_env_var("THUMBNAIL_BUCKET", "demo-project-thumbnails"),
            thumbnail_interval_seconds=interval,
            max_workers=max_workers,
            environment=get_env_var("ENVIRONMENT", "dev"),
            log_level=get_env_var("LOG_LEVEL", "INFO").upper(),
        )
