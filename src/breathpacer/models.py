"""Data models for breathpacer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple


class Phase(str, Enum):
    INHALE = "inhale"
    HOLD1 = "hold1"
    EXHALE = "exhale"
    HOLD2 = "hold2"


PHASE_LABELS = {
    Phase.INHALE: "Inhale",
    Phase.HOLD1: "Hold",
    Phase.EXHALE: "Exhale",
    Phase.HOLD2: "Hold",
}

BACKGROUND_NONE = "none"


def phase_label(phase: Phase) -> str:
    return PHASE_LABELS[phase]


def _check_seconds(name: str, value: Any, allow_zero: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer number of seconds.")
    if allow_zero and value < 0:
        raise ValueError(f"{name} must be >= 0.")
    if not allow_zero and value <= 0:
        raise ValueError(f"{name} must be > 0.")


@dataclass(frozen=True)
class BreathingPattern:
    id: str
    name: str
    inhale: int
    hold1: int
    exhale: int
    hold2: int
    description: str = ""
    color_theme: str = "primary"

    def __post_init__(self) -> None:
        _check_seconds("inhale", self.inhale, allow_zero=False)
        _check_seconds("exhale", self.exhale, allow_zero=False)
        _check_seconds("hold1", self.hold1, allow_zero=True)
        _check_seconds("hold2", self.hold2, allow_zero=True)

    def duration_for(self, phase: Phase) -> int:
        return getattr(self, phase.value)

    @property
    def cycle_seconds(self) -> int:
        return self.inhale + self.hold1 + self.exhale + self.hold2

    @property
    def steps(self) -> List[Tuple[Phase, int]]:
        """Phases of one cycle in order, zero-length holds left out."""
        return [
            (phase, self.duration_for(phase))
            for phase in Phase
            if self.duration_for(phase) > 0
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "colorTheme": self.color_theme,
            "steps": {
                "inhale": self.inhale,
                "hold1": self.hold1,
                "exhale": self.exhale,
                "hold2": self.hold2,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreathingPattern":
        steps = data.get("steps", data)
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            color_theme=data.get("colorTheme", "primary"),
            inhale=steps.get("inhale", 0),
            hold1=steps.get("hold1", 0),
            exhale=steps.get("exhale", 0),
            hold2=steps.get("hold2", 0),
        )


def next_phase(phase: Phase, pattern: BreathingPattern) -> Phase:
    """Cyclic successor of ``phase``; holds of zero seconds are skipped."""
    if phase == Phase.INHALE:
        return Phase.HOLD1 if pattern.hold1 > 0 else Phase.EXHALE
    if phase == Phase.HOLD1:
        return Phase.EXHALE
    if phase == Phase.EXHALE:
        return Phase.HOLD2 if pattern.hold2 > 0 else Phase.INHALE
    return Phase.INHALE


@dataclass(frozen=True)
class AudioSettings:
    enabled: bool = True
    background_track: str = BACKGROUND_NONE
    volume: int = 80

    def __post_init__(self) -> None:
        if isinstance(self.volume, bool) or not isinstance(self.volume, int):
            raise ValueError("volume must be an integer.")
        if not 0 <= self.volume <= 100:
            raise ValueError("volume must be between 0 and 100.")
        if not self.background_track:
            raise ValueError("background_track must be a track id or 'none'.")

    @property
    def has_background(self) -> bool:
        return self.background_track != BACKGROUND_NONE


@dataclass
class SessionState:
    current_phase: Phase
    phase_duration: int
    seconds_remaining: int
    is_running: bool = False


@dataclass(frozen=True)
class EngineState:
    phase: Phase
    phase_label: str
    phase_duration: int
    seconds_remaining: int
    is_running: bool

    @classmethod
    def from_session(cls, session: SessionState) -> "EngineState":
        return cls(
            phase=session.current_phase,
            phase_label=phase_label(session.current_phase),
            phase_duration=session.phase_duration,
            seconds_remaining=session.seconds_remaining,
            is_running=session.is_running,
        )


def format_clock(seconds: int) -> str:
    minutes, rest = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{rest:02d}"
