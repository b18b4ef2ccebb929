from __future__ import annotations

import logging
import os
from dataclasses import dataclass


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_MODEL = "gemini-1.5-flash"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the extraction pipeline."""

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    timeout_seconds: float = 45.0
    max_retries: int = 3
    backoff_seconds: float = 2.0
    image_delay_seconds: float = 1.0
    max_upload_files: int = 10
    max_upload_bytes: int = 10 * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            api_key=os.getenv("GEMINI_API_KEY", "").strip(),
            api_url=(os.getenv("GEMINI_API_URL", "").strip() or DEFAULT_API_URL).rstrip("/"),
            model=os.getenv("GEMINI_MODEL", "").strip() or DEFAULT_MODEL,
            timeout_seconds=_env_float("INFERENCE_TIMEOUT_SECONDS", 45.0),
            max_retries=_env_int("INFERENCE_MAX_RETRIES", 3),
            backoff_seconds=_env_float("INFERENCE_BACKOFF_SECONDS", 2.0),
            image_delay_seconds=_env_float("BATCH_IMAGE_DELAY_SECONDS", 1.0),
            max_upload_files=_env_int("MAX_UPLOAD_FILES", 10),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        )
        if not settings.api_key:
            logger.error("GEMINI_API_KEY is not configured; extraction calls will fail")
        return settings

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/{self.model}:generateContent"
