# cinematch/core/config.py
from functools import lru_cache
import os, json
from pathlib import Path
from typing import List
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "CineMatch AI API"
    DEBUG: bool = False
    ROOT_PATH: str = os.getenv("ROOT_PATH", "")              # public root (behind a proxy)

    LOG_DIR: Path = Path("logs")

    MAX_SCRIPT_KB: int = 512
    MAX_SIMULATIONS: int = 200
    OUTBOUND_TIMEOUT_SEC: int = 90

    # --- CORS ---
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v):
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            try:
                parsed = json.loads(s)
                if isinstance(parsed, list):
                    return parsed
            except ValueError:
                return [x.strip() for x in s.split(",") if x.strip()]
        return v

    # --- Gemini / Veo ---
    GEMINI_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"),
    )
    GEMINI_MODEL_TEXT: str = "gemini-2.5-flash"
    GEMINI_MODEL_IMAGE: str = "gemini-2.5-flash-image"
    GEMINI_MODEL_VIDEO: str = "veo-3.1-fast-generate-preview"

    VIDEO_RESOLUTION: str = "720p"
    VIDEO_ASPECT_RATIO: str = "16:9"
    VIDEO_POLL_SEC: float = 5
    VIDEO_TIMEOUT_SEC: float = 0          # 0 -> poll until the operation reports done
    VIDEO_PROMPT_CHARS: int = 300

    @field_validator("VIDEO_RESOLUTION")
    @classmethod
    def _check_resolution(cls, v: str) -> str:
        if v.lower() not in {"720p", "1080p"}:
            raise ValueError("VIDEO_RESOLUTION must be 720p or 1080p")
        return v.lower()

    @field_validator("VIDEO_ASPECT_RATIO")
    @classmethod
    def _check_aspect(cls, v: str) -> str:
        if v.strip() not in {"16:9", "9:16"}:
            raise ValueError("VIDEO_ASPECT_RATIO must be 16:9 or 9:16")
        return v.strip()

    # ================= Helpers =================
    def max_script_bytes(self) -> int:
        return self.MAX_SCRIPT_KB * 1024

    def ensure_dirs(self) -> None:
        self.LOG_DIR.mkdir(parents=True, exist_ok=True)

@lru_cache
def get_settings() -> Settings:
    s = Settings()
    s.ensure_dirs()
    return s
