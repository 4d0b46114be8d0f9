"""Phase timing engine.

Drives a breathing session: the current phase and its duration, the session
countdown, and the audio commands tied to phase changes and start/stop.

Two timers run while a session is active: a 1 second repeating tick for the
countdown and a one-shot timer re-armed on every phase change. Both are armed
with the engine's current generation. Any operation that cancels timers bumps
the generation first, so a callback that was already in flight when its timer
got cancelled finds a stale generation and returns without touching state.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .audio import AudioService
from .models import (
    AudioSettings,
    BreathingPattern,
    EngineState,
    Phase,
    SessionState,
    next_phase,
)
from .scheduler import CancelToken, Scheduler

logger = logging.getLogger(__name__)

TICK_INTERVAL_S = 1.0

StateListener = Callable[[EngineState], None]


def _check_minutes(minutes: int) -> None:
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
        raise ValueError("session_duration_minutes must be a positive integer.")


def _check_pattern(pattern: BreathingPattern) -> None:
    if not isinstance(pattern, BreathingPattern):
        raise TypeError("pattern must be a BreathingPattern.")
    if pattern.cycle_seconds <= 0:
        raise ValueError(f"Pattern {pattern.id} has no timed phases.")


class PhaseTimingEngine:
    def __init__(
        self,
        pattern: BreathingPattern,
        session_duration_minutes: int,
        audio_settings: AudioSettings,
        audio: AudioService,
        scheduler: Scheduler,
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        _check_pattern(pattern)
        _check_minutes(session_duration_minutes)
        self._pattern = pattern
        self._minutes = session_duration_minutes
        self._audio_settings = audio_settings
        self._audio = audio
        self._scheduler = scheduler
        self._on_reset = on_reset

        self._lock = threading.RLock()
        self._generation = 0
        self._tick_token: Optional[CancelToken] = None
        self._phase_token: Optional[CancelToken] = None
        self._background_track: Optional[str] = None
        self._listeners: List[StateListener] = []
        self._session = SessionState(
            current_phase=Phase.INHALE,
            phase_duration=pattern.inhale,
            seconds_remaining=session_duration_minutes * 60,
        )

    # -- observable state -------------------------------------------------

    @property
    def state(self) -> EngineState:
        with self._lock:
            return EngineState.from_session(self._session)

    @property
    def is_running(self) -> bool:
        return self._session.is_running

    @property
    def pattern(self) -> BreathingPattern:
        return self._pattern

    @property
    def session_duration_minutes(self) -> int:
        return self._minutes

    @property
    def audio_settings(self) -> AudioSettings:
        return self._audio_settings

    @property
    def generation(self) -> int:
        return self._generation

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, state: EngineState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")

    # -- intents ----------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            session = self._session
            if session.is_running:
                return
            if self._pattern.cycle_seconds <= 0 or session.phase_duration <= 0:
                raise RuntimeError("Cannot start a session with zero-length phases.")
            if session.seconds_remaining <= 0:
                session.seconds_remaining = self._minutes * 60

            self._generation += 1
            self._cancel_timers()
            session.is_running = True
            self._play_background()
            self._play_cue()
            self._arm_timers()
            logger.info(
                "Session started: pattern=%s phase=%s remaining=%ss",
                self._pattern.id,
                session.current_phase.value,
                session.seconds_remaining,
            )
            state = EngineState.from_session(session)
        self._notify(state)

    def pause(self) -> None:
        with self._lock:
            if not self._halt():
                return
            state = EngineState.from_session(self._session)
        self._notify(state)

    def toggle_play_pause(self) -> None:
        with self._lock:
            running = self._session.is_running
            if running:
                self._halt()
                self._stop_background()
                state = EngineState.from_session(self._session)
        if running:
            self._notify(state)
        else:
            self.start()

    def reset(self) -> None:
        with self._lock:
            self._halt()
            self._stop_background()
            session = self._session
            session.seconds_remaining = self._minutes * 60
            session.current_phase = Phase.INHALE
            session.phase_duration = self._pattern.inhale
            logger.info("Session reset: %ss", session.seconds_remaining)
            state = EngineState.from_session(session)
        self._notify(state)
        if self._on_reset is not None:
            self._on_reset()

    def close(self) -> None:
        with self._lock:
            self._halt()
            self._stop_background()

    # -- input changes ----------------------------------------------------

    def set_pattern(self, pattern: BreathingPattern) -> None:
        _check_pattern(pattern)
        with self._lock:
            if pattern == self._pattern:
                return
            self._pattern = pattern
            session = self._session
            if pattern.duration_for(session.current_phase) <= 0:
                session.current_phase = next_phase(session.current_phase, pattern)
            session.phase_duration = pattern.duration_for(session.current_phase)
            if session.is_running:
                self._generation += 1
                self._cancel_timers()
                self._play_cue()
                self._arm_timers()
            logger.info(
                "Pattern changed to %s (phase=%s %ss)",
                pattern.id,
                session.current_phase.value,
                session.phase_duration,
            )
            state = EngineState.from_session(session)
        self._notify(state)

    def set_session_duration(self, minutes: int) -> None:
        """Idle: applies now. Running: applies at the next reset."""
        _check_minutes(minutes)
        with self._lock:
            self._minutes = minutes
            if self._session.is_running:
                return
            self._session.seconds_remaining = minutes * 60
            state = EngineState.from_session(self._session)
        self._notify(state)

    def set_audio_settings(self, settings: AudioSettings) -> None:
        with self._lock:
            old = self._audio_settings
            self._audio_settings = settings
            if old.enabled and not settings.enabled:
                self._audio.stop_cues()
            if settings.background_track != old.background_track:
                if self._background_track is not None or self._session.is_running:
                    self._stop_background()
                    if self._session.is_running:
                        self._play_background()
            elif settings.volume != old.volume and self._background_track is not None:
                self._audio.set_volume(settings.volume)

    # -- internals (lock held) --------------------------------------------

    def _halt(self) -> bool:
        session = self._session
        if not session.is_running:
            return False
        self._generation += 1
        self._cancel_timers()
        session.is_running = False
        self._audio.stop_cues()
        logger.info(
            "Session paused: phase=%s remaining=%ss",
            session.current_phase.value,
            session.seconds_remaining,
        )
        return True

    def _cancel_timers(self) -> None:
        if self._tick_token is not None:
            self._tick_token.cancel()
            self._tick_token = None
        if self._phase_token is not None:
            self._phase_token.cancel()
            self._phase_token = None

    def _arm_timers(self) -> None:
        generation = self._generation
        self._tick_token = self._scheduler.schedule_repeating(
            TICK_INTERVAL_S, self._on_tick, generation
        )
        self._phase_token = self._scheduler.schedule_once(
            self._session.phase_duration, self._on_phase_timer, generation
        )

    def _play_cue(self) -> None:
        if self._audio_settings.enabled:
            self._audio.play_cue(self._session.current_phase, self._audio_settings.volume)

    def _play_background(self) -> None:
        settings = self._audio_settings
        if settings.has_background:
            self._audio.play_background(settings.background_track, settings.volume)
            self._background_track = settings.background_track

    def _stop_background(self) -> None:
        self._audio.stop_background()
        self._background_track = None

    # -- timer callbacks --------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._session.is_running

    def _on_phase_timer(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            session = self._session
            session.current_phase = next_phase(session.current_phase, self._pattern)
            session.phase_duration = self._pattern.duration_for(session.current_phase)
            self._play_cue()
            self._phase_token = self._scheduler.schedule_once(
                session.phase_duration, self._on_phase_timer, generation
            )
            logger.debug(
                "Phase -> %s (%ss)", session.current_phase.value, session.phase_duration
            )
            state = EngineState.from_session(session)
        self._notify(state)

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            session = self._session
            if session.seconds_remaining <= 1:
                session.seconds_remaining = 0
                self._halt()
                self._stop_background()
                logger.info("Session complete")
            else:
                session.seconds_remaining -= 1
            state = EngineState.from_session(session)
        self._notify(state)
