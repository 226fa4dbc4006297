from pathlib import Path
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Priority: environment variables > .env file
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    CHAT_NAME_MIN_LENGTH: int = Field(default=2, ge=1)
    CHAT_NAME_MAX_LENGTH: int = Field(default=20, ge=1)
    CHAT_MESSAGE_MAX_LENGTH: int = Field(default=500, ge=1)
    # If set, websocket handshakes and HTTP endpoints (except /health/) must present this key.
    CHAT_AUTH_API_KEY: Optional[str] = None

    @field_validator("CHAT_AUTH_API_KEY", mode="before")
    @classmethod
    def _blank_key_is_unset(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


# Load .env before creating the Settings instance so pydantic-settings sees it.
_current_dir = Path(__file__).resolve().parent
for _env_path in (
    _current_dir.parent.parent / ".env",  # repository root
    _current_dir.parent / ".env",         # chat_server/.env
    Path(os.getcwd()) / ".env",
):
    if _env_path.exists():
        load_dotenv(_env_path, override=False)
        break

config = Settings()
