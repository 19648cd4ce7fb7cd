"""Service configuration helpers for deployment environments.

Runtime configuration is read from ``PIIMASK_*`` environment variables once and
cached. It is importable from both the CLI and FastAPI without side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional
import os


def _parse_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _split_csv(value: str | None) -> List[str]:
    if not value:
        return []
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts


@dataclass
class ServiceSettings:
    """Runtime settings for the detection service and CLI."""

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_token: Optional[str] = None
    cors_origins: List[str] = field(default_factory=list)
    model_repo: str = "scampion/piiranha"
    model_revision: str = "main"
    tokenizer_repo: str = "answerdotai/ModernBERT-base"
    tokenizer_revision: str = "main"
    device: str = "auto"
    page_workers: int = 1
    readiness_check_model: bool = True

    @staticmethod
    def from_env() -> "ServiceSettings":
        cors_raw = os.environ.get("PIIMASK_API_CORS_ORIGINS")
        settings = ServiceSettings(
            api_host=os.environ.get("PIIMASK_API_HOST", "0.0.0.0"),
            api_port=int(os.environ.get("PIIMASK_API_PORT", "8080")),
            api_token=os.environ.get("PIIMASK_API_TOKEN"),
            cors_origins=_split_csv(cors_raw),
            model_repo=os.environ.get("PIIMASK_MODEL_REPO", "scampion/piiranha"),
            model_revision=os.environ.get("PIIMASK_MODEL_REVISION", "main"),
            tokenizer_repo=os.environ.get(
                "PIIMASK_TOKENIZER_REPO", "answerdotai/ModernBERT-base"
            ),
            tokenizer_revision=os.environ.get("PIIMASK_TOKENIZER_REVISION", "main"),
            device=os.environ.get("PIIMASK_DEVICE", "auto"),
            page_workers=max(1, int(os.environ.get("PIIMASK_PAGE_WORKERS", "1"))),
            readiness_check_model=_parse_bool(
                os.environ.get("PIIMASK_READY_CHECK_MODEL"), default=True
            ),
        )
        return settings


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    """Return cached service settings."""
    return ServiceSettings.from_env()


def reset_settings_cache() -> None:
    """Reset cached settings (useful in tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
