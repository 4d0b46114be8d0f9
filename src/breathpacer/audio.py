"""Audio cue and background playback."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import numpy as np

from .audio_utils import (
    SAMPLE_RATE_HZ,
    apply_envelope,
    modulated_drone,
    scale_volume,
    sine_tone,
)
from .models import BACKGROUND_NONE, Phase

logger = logging.getLogger(__name__)

CUE_FREQUENCIES_HZ = {
    Phase.INHALE: 440.0,
    Phase.HOLD1: 392.0,
    Phase.EXHALE: 329.63,
    Phase.HOLD2: 392.0,
}
CUE_DURATION_S = 0.3
CUE_ATTACK_S = 0.05
CUE_PEAK = 0.3

# track id -> (base frequency Hz, frequency modulation depth)
BACKGROUND_TRACKS = {
    "ocean": (77.0, 0.1),
    "forest": (196.0, 0.05),
}
BACKGROUND_GAIN = 0.15
BACKGROUND_LOOP_S = 5.0


class AudioService:
    """Commands the phase engine sends. Implementations never raise."""

    def init(self) -> None:
        pass

    def shutdown(self) -> None:
        pass

    def play_cue(self, phase: Phase, volume: int) -> None:
        raise NotImplementedError

    def play_background(self, track_id: str, volume: int) -> None:
        raise NotImplementedError

    def stop_background(self) -> None:
        raise NotImplementedError

    def stop_cues(self) -> None:
        raise NotImplementedError

    def set_volume(self, volume: int) -> None:
        raise NotImplementedError


class NullAudioService(AudioService):
    def play_cue(self, phase: Phase, volume: int) -> None:
        logger.debug("Cue (silent): %s", phase.value)

    def play_background(self, track_id: str, volume: int) -> None:
        logger.debug("Background (silent): %s", track_id)

    def stop_background(self) -> None:
        pass

    def stop_cues(self) -> None:
        pass

    def set_volume(self, volume: int) -> None:
        pass


def list_output_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    return [d for d in sd.query_devices() if d.get("max_output_channels", 0) > 0]


def select_output_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    if not candidates:
        return None
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
    return candidates[0]


def build_cue(phase: Phase, volume: int) -> np.ndarray:
    tone = sine_tone(CUE_FREQUENCIES_HZ[phase], CUE_DURATION_S)
    return apply_envelope(tone, CUE_ATTACK_S, CUE_PEAK) * scale_volume(volume)


def build_background(track_id: str) -> np.ndarray:
    frequency, modulation = BACKGROUND_TRACKS.get(
        track_id, BACKGROUND_TRACKS["ocean"]
    )
    return modulated_drone(frequency, modulation, BACKGROUND_LOOP_S)


class ToneAudioService(AudioService):
    """Synthesized tones played through sounddevice.

    Cues go through ``sounddevice.play``; the background drone loops on its
    own output stream so a cue never cuts it off.
    """

    def __init__(self, device_name: Optional[str] = None) -> None:
        self.device_name = device_name
        self._sd = None
        self._device_index: Optional[int] = None
        self._lock = threading.Lock()
        self._stream = None
        self._loop: Optional[np.ndarray] = None
        self._loop_pos = 0
        self._gain = 0.0

    def init(self) -> None:
        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise RuntimeError("sounddevice is required for playback.") from exc

        self._sd = sd
        device = None
        if self.device_name:
            try:
                candidates = list_output_devices()
            except Exception as exc:
                raise RuntimeError(f"Output device query failed: {exc}") from exc
            device = select_output_device(candidates, self.device_name)
        self._device_index = device.get("index") if device else None
        logger.info(
            "Audio ready on %s",
            device.get("name") if device else "default output device",
        )

    def shutdown(self) -> None:
        self.stop_cues()
        self.stop_background()
        self._sd = None

    def play_cue(self, phase: Phase, volume: int) -> None:
        if self._sd is None:
            return
        try:
            self._sd.play(
                build_cue(phase, volume),
                samplerate=SAMPLE_RATE_HZ,
                device=self._device_index,
            )
        except Exception as exc:
            logger.warning("Cue playback failed: %s", exc)

    def stop_cues(self) -> None:
        if self._sd is None:
            return
        try:
            self._sd.stop()
        except Exception as exc:
            logger.debug("Cue stop failed: %s", exc)

    def _callback(self, outdata, frames, _time, status) -> None:
        if status:
            logger.debug("Background stream status: %s", status)
        with self._lock:
            loop = self._loop
            gain = self._gain
            if loop is None:
                outdata.fill(0)
                return
            idx = (self._loop_pos + np.arange(frames)) % loop.shape[0]
            self._loop_pos = int((self._loop_pos + frames) % loop.shape[0])
        outdata[:, 0] = loop[idx] * gain

    def play_background(self, track_id: str, volume: int) -> None:
        self.stop_background()
        if track_id == BACKGROUND_NONE or self._sd is None:
            return
        with self._lock:
            self._loop = build_background(track_id)
            self._loop_pos = 0
            self._gain = scale_volume(volume) * BACKGROUND_GAIN
        try:
            self._stream = self._sd.OutputStream(
                samplerate=SAMPLE_RATE_HZ,
                channels=1,
                dtype="float32",
                device=self._device_index,
                callback=self._callback,
            )
            self._stream.start()
            logger.info("Background track started: %s", track_id)
        except Exception as exc:
            logger.warning("Background playback failed: %s", exc)
            self._stream = None

    def stop_background(self) -> None:
        stream = self._stream
        self._stream = None
        with self._lock:
            self._loop = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as exc:
            logger.debug("Background stop failed: %s", exc)

    def set_volume(self, volume: int) -> None:
        with self._lock:
            self._gain = scale_volume(volume) * BACKGROUND_GAIN


_service: Optional[AudioService] = None
_service_lock = threading.Lock()


def get_audio_service(
    enabled: bool = True, device_name: Optional[str] = None
) -> AudioService:
    """Process-wide audio service, created and initialized on first use."""
    global _service
    with _service_lock:
        if _service is None:
            service: AudioService = (
                ToneAudioService(device_name) if enabled else NullAudioService()
            )
            try:
                service.init()
            except RuntimeError as exc:
                logger.warning("Audio unavailable, continuing silently: %s", exc)
                service = NullAudioService()
            _service = service
        return _service


def shutdown_audio_service() -> None:
    global _service
    with _service_lock:
        if _service is not None:
            _service.shutdown()
            _service = None
