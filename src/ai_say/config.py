from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "sonic-turbo-2025-03-07"
DEFAULT_VOICE_ID = "694f9389-aac1-45b6-b726-9d9369183238"
DEFAULT_API_VERSION = "2025-04-16"


def _strip_quotes(s: str) -> str:
    s = (s or "").strip()
    if len(s) >= 2 and ((s[0] == s[-1]) and s[0] in ("'", '"')):
        s = s[1:-1].strip()
    return s


def _env_files() -> tuple[str, str]:
    """
    A local .env wins; otherwise fall back to the per-user one so the command
    works from any directory.
    """
    user_env = str(Path.home() / ".config" / "ai-say" / ".env")
    return (user_env, ".env")


class CartesiaSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: Optional[str] = Field(default=None, alias="CARTESIA_API_KEY")
    base_url: str = Field(default="https://api.cartesia.ai", alias="CARTESIA_BASE_URL")
    ws_url: str = Field(default="wss://api.cartesia.ai/tts/websocket", alias="CARTESIA_WS_URL")
    version: str = Field(default=DEFAULT_API_VERSION, alias="CARTESIA_VERSION")
    model: str = Field(default=DEFAULT_MODEL, alias="CARTESIA_MODEL")
    voice: str = Field(default=DEFAULT_VOICE_ID, alias="CARTESIA_VOICE")
    timeout_seconds: float = Field(default=30, alias="CARTESIA_TIMEOUT_SECONDS")

    @field_validator("api_key", mode="before")
    @classmethod
    def _normalize_api_key(cls, v: object) -> Optional[str]:
        if v is None:
            return None
        s = _strip_quotes(str(v))
        return s or None

    @field_validator("version", "model", "voice", mode="before")
    @classmethod
    def _norm_str(cls, v: object) -> str:
        return _strip_quotes(str(v))

    @field_validator("base_url", "ws_url", mode="before")
    @classmethod
    def _normalize_url(cls, v: object) -> str:
        return _strip_quotes(str(v)).rstrip("/")


class AudioSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # PortAudio device index or (sub)name; empty means the system default output.
    device: str = Field(default="", alias="AI_SAY_AUDIO_DEVICE")

    @field_validator("device", mode="before")
    @classmethod
    def _norm_device(cls, v: object) -> str:
        if v is None:
            return ""
        return _strip_quotes(str(v))

    @property
    def device_selector(self) -> Optional[object]:
        if not self.device:
            return None
        if self.device.isdigit():
            return int(self.device)
        return self.device


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = Field(default="ai-say", alias="AI_SAY_NAME")
    log_level: str = Field(default="WARNING", alias="AI_SAY_LOG_LEVEL")

    cartesia: CartesiaSettings = Field(default_factory=CartesiaSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_level(cls, v: object) -> str:
        return (_strip_quotes(str(v)) or "WARNING").upper()
