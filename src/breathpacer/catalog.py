"""Static catalog of breathing exercises."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .models import BreathingPattern

DEFAULT_PATTERNS = (
    BreathingPattern(
        id="box-breathing",
        name="Box Breathing",
        description="Inhale, Hold, Exhale, Hold",
        color_theme="primary",
        inhale=4,
        hold1=4,
        exhale=4,
        hold2=4,
    ),
    BreathingPattern(
        id="4-7-8",
        name="4-7-8 Technique",
        description="Relaxation breath",
        color_theme="secondary",
        inhale=4,
        hold1=7,
        exhale=8,
        hold2=0,
    ),
    BreathingPattern(
        id="deep-calm",
        name="Deep Calm",
        description="Stress relief breathing",
        color_theme="accent",
        inhale=6,
        hold1=2,
        exhale=7,
        hold2=0,
    ),
    BreathingPattern(
        id="energizing",
        name="Energizing Breath",
        description="Morning activation",
        color_theme="success",
        inhale=2,
        hold1=0,
        exhale=2,
        hold2=0,
    ),
)

DEFAULT_PATTERN_ID = "box-breathing"


class ExerciseCatalog:
    """Read-only lookup seeded once at construction."""

    def __init__(self, patterns: Iterable[BreathingPattern] = DEFAULT_PATTERNS) -> None:
        self._patterns: Dict[str, BreathingPattern] = {}
        for pattern in patterns:
            if pattern.id in self._patterns:
                raise ValueError(f"Duplicate exercise id: {pattern.id}")
            self._patterns[pattern.id] = pattern

    def list_exercises(self) -> List[BreathingPattern]:
        return list(self._patterns.values())

    def get_exercise(self, exercise_id: str) -> Optional[BreathingPattern]:
        return self._patterns.get(exercise_id)

    def ids(self) -> List[str]:
        return list(self._patterns)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [pattern.to_dict() for pattern in self._patterns.values()]


_catalog: Optional[ExerciseCatalog] = None


def default_catalog() -> ExerciseCatalog:
    global _catalog
    if _catalog is None:
        _catalog = ExerciseCatalog()
    return _catalog
