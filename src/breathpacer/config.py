"""Configuration handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import yaml

from .catalog import DEFAULT_PATTERN_ID
from .models import AudioSettings

SESSION_MINUTE_CHOICES = (3, 5, 10, 15)
BACKGROUND_CHOICES = ("none", "ocean", "forest")


@dataclass
class AudioConfig:
    enabled: bool = True
    background_track: str = "ocean"
    volume: int = 80
    device_name: Optional[str] = None

    def to_settings(self) -> AudioSettings:
        return AudioSettings(
            enabled=self.enabled,
            background_track=self.background_track,
            volume=self.volume,
        )


@dataclass
class Config:
    pattern_id: str = DEFAULT_PATTERN_ID
    session_minutes: int = 5
    log_dir: str = "logs"
    audio: AudioConfig = field(default_factory=AudioConfig)


def load_config(path: str) -> Config:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    audio_data = data.get("audio", {}) or {}
    audio = AudioConfig(
        enabled=bool(audio_data.get("enabled", True)),
        background_track=audio_data.get("background_track", "ocean") or "none",
        volume=int(audio_data.get("volume", 80)),
        device_name=audio_data.get("device_name"),
    )

    return Config(
        pattern_id=data.get("pattern_id", DEFAULT_PATTERN_ID),
        session_minutes=int(data.get("session_minutes", 5)),
        log_dir=data.get("log_dir", "logs"),
        audio=audio,
    )


def save_config(path: str, config: Config) -> None:
    data = {
        "pattern_id": config.pattern_id,
        "session_minutes": config.session_minutes,
        "log_dir": config.log_dir,
        "audio": {
            "enabled": config.audio.enabled,
            "background_track": config.audio.background_track,
            "volume": config.audio.volume,
            "device_name": config.audio.device_name,
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
