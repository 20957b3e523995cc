import os
from dataclasses import dataclass
from typing import Optional

# --- Menu Scan Limits ---
MAX_IMAGE_SIZE = 20 * 1024 * 1024  # 20MB
SUPPORTED_IMAGE_FORMATS = ("image/jpeg", "image/png", "image/webp")
DEFAULT_MIME_TYPE = "image/jpeg"

# --- Model Defaults ---
DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TIMEOUT_SECONDS = 60.0

# --- Auth Defaults ---
DEFAULT_ALGORITHM = "HS256"
DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 30
ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once by the process entry point."""

    secret_key: str
    algorithm: str = DEFAULT_ALGORITHM
    access_token_expire_minutes: int = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    vision_model: str = DEFAULT_VISION_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Builds settings from environment variables.
        Call this after load_dotenv() so values from .env are visible.
        """
        return cls(
            secret_key=os.getenv("SECRET_KEY", ""),
            algorithm=os.getenv("ALGORITHM") or DEFAULT_ALGORITHM,
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES)
            ),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            vision_model=os.getenv("OPENAI_VISION_MODEL", DEFAULT_VISION_MODEL),
            max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS)),
            timeout_seconds=float(os.getenv("OPENAI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
