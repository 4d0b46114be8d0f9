"""Audio helpers."""

from __future__ import annotations

import numpy as np

SAMPLE_RATE_HZ = 44100


def scale_volume(volume: int) -> float:
    return min(max(volume / 100.0, 0.0), 1.0)


def sine_tone(
    frequency_hz: float,
    duration_s: float,
    sample_rate_hz: int = SAMPLE_RATE_HZ,
) -> np.ndarray:
    if duration_s <= 0:
        raise ValueError("duration_s must be > 0.")
    frames = int(duration_s * sample_rate_hz)
    t = np.arange(frames, dtype=np.float32) / sample_rate_hz
    return np.sin(2 * np.pi * frequency_hz * t).astype(np.float32)


def apply_envelope(
    samples: np.ndarray,
    attack_s: float,
    peak: float,
    sample_rate_hz: int = SAMPLE_RATE_HZ,
) -> np.ndarray:
    """Linear ramp up to ``peak`` over ``attack_s`` then down to silence."""
    total = samples.shape[0]
    attack = min(int(attack_s * sample_rate_hz), total)
    envelope = np.empty(total, dtype=np.float32)
    envelope[:attack] = np.linspace(0.0, peak, attack, endpoint=False)
    envelope[attack:] = np.linspace(peak, 0.0, total - attack)
    return samples * envelope


def modulated_drone(
    frequency_hz: float,
    modulation: float,
    duration_s: float,
    lfo_hz: float = 0.2,
    sample_rate_hz: int = SAMPLE_RATE_HZ,
) -> np.ndarray:
    """Sine drone whose pitch wobbles by ``modulation`` of its base frequency.

    ``duration_s`` should be a whole number of LFO periods so the buffer
    loops without a click.
    """
    frames = int(duration_s * sample_rate_hz)
    t = np.arange(frames, dtype=np.float64) / sample_rate_hz
    instantaneous = frequency_hz * (
        1.0 + modulation * np.sin(2 * np.pi * lfo_hz * t)
    )
    phase = 2 * np.pi * np.cumsum(instantaneous) / sample_rate_hz
    return np.sin(phase).astype(np.float32)


def to_int16(samples: np.ndarray) -> np.ndarray:
    clipped = np.clip(samples, -1.0, 1.0)
    return (clipped * 32767).astype(np.int16)
