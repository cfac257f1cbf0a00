"""Process-wide relay settings, read from the environment once."""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_MODEL_ID = "gemini-2.5-flash-preview-09-2025"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class Settings:
    api_key: str | None = field(default=None, repr=False)
    model_id: str = DEFAULT_MODEL_ID
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = 60.0
    host: str = "0.0.0.0"
    port: int = 8888
    log_level: str = "INFO"

    @property
    def generate_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model_id}:generateContent"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or None,
            model_id=os.getenv("GEMINI_MODEL_ID", DEFAULT_MODEL_ID),
            base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            timeout_s=float(os.getenv("GEMINI_TIMEOUT_S", "60")),
            host=os.getenv("RELAY_HOST", "0.0.0.0"),
            port=int(os.getenv("RELAY_PORT", "8888")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process; built on first use and never reloaded."""
    return Settings.from_env()
