import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
GENERATION_ENV_PREFIX = "OPENAI_"
GENERATION_ENV_SUFFIXES = ("_TEMPERATURE", "_MAX_TOKENS")
GENERATION_TYPE_NAMES = ("BLURB", "DESCRIPTION", "KEYWORDS", "CATEGORIES", "FOREWORD", "ANALYSIS")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


def _generation_overrides_from_env() -> dict[str, str]:
    # OPENAI_BLURB_TEMPERATURE -> BLURB_TEMPERATURE
    overrides: dict[str, str] = {}
    for type_name in GENERATION_TYPE_NAMES:
        for suffix in GENERATION_ENV_SUFFIXES:
            value = os.getenv(f"{GENERATION_ENV_PREFIX}{type_name}{suffix}")
            if value is not None:
                overrides[f"{type_name}{suffix}"] = value
    return overrides


class Settings(BaseModel):
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str = "https://api.openai.com/v1"
    request_timeout: int = 60
    database_path: str = str(PROJECT_ROOT / "bookcopy.db")
    upload_dir: str = str(PROJECT_ROOT / "uploads")
    max_upload_bytes: int = 30 * 1024 * 1024
    token_ttl_minutes: int = 60
    log_level: str = "INFO"
    generation_overrides: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "") or defaults.openai_model,
            openai_base_url=os.getenv("OPENAI_BASE_URL", "") or defaults.openai_base_url,
            request_timeout=_env_int("REQUEST_TIMEOUT", defaults.request_timeout),
            database_path=os.getenv("DATABASE_PATH", "") or defaults.database_path,
            upload_dir=os.getenv("UPLOAD_DIR", "") or defaults.upload_dir,
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
            token_ttl_minutes=_env_int("TOKEN_TTL_MINUTES", defaults.token_ttl_minutes),
            log_level=os.getenv("LOG_LEVEL", "") or defaults.log_level,
            generation_overrides=_generation_overrides_from_env(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
