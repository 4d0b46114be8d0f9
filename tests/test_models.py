import pytest

from breathpacer.models import (
    AudioSettings,
    BreathingPattern,
    Phase,
    format_clock,
    next_phase,
    phase_label,
)


def _pattern(inhale=4, hold1=4, exhale=4, hold2=4):
    return BreathingPattern(
        id="p", name="P", inhale=inhale, hold1=hold1, exhale=exhale, hold2=hold2
    )


@pytest.mark.parametrize(
    "current, hold1, hold2, expected",
    [
        (Phase.INHALE, 4, 0, Phase.HOLD1),
        (Phase.INHALE, 0, 0, Phase.EXHALE),
        (Phase.HOLD1, 4, 0, Phase.EXHALE),
        (Phase.EXHALE, 0, 4, Phase.HOLD2),
        (Phase.EXHALE, 4, 0, Phase.INHALE),
        (Phase.HOLD2, 0, 4, Phase.INHALE),
    ],
)
def test_next_phase_table(current, hold1, hold2, expected):
    assert next_phase(current, _pattern(hold1=hold1, hold2=hold2)) == expected


@pytest.mark.parametrize(
    "kwargs",
    [
        {"inhale": 0},
        {"exhale": 0},
        {"inhale": -2},
        {"hold1": -1},
        {"hold2": 1.5},
    ],
)
def test_pattern_rejects_invalid_durations(kwargs):
    with pytest.raises(ValueError):
        _pattern(**kwargs)


def test_steps_skip_zero_holds():
    pattern = _pattern(inhale=4, hold1=7, exhale=8, hold2=0)
    assert pattern.steps == [(Phase.INHALE, 4), (Phase.HOLD1, 7), (Phase.EXHALE, 8)]
    assert pattern.cycle_seconds == 19


def test_pattern_wire_shape():
    pattern = _pattern(hold2=0)
    data = pattern.to_dict()
    assert data["steps"] == {"inhale": 4, "hold1": 4, "exhale": 4, "hold2": 0}
    assert data["colorTheme"] == "primary"
    assert BreathingPattern.from_dict(data) == pattern


def test_phase_labels():
    assert phase_label(Phase.INHALE) == "Inhale"
    assert phase_label(Phase.HOLD1) == "Hold"
    assert phase_label(Phase.HOLD2) == "Hold"
    assert phase_label(Phase.EXHALE) == "Exhale"


def test_audio_settings_volume_range():
    with pytest.raises(ValueError):
        AudioSettings(volume=101)
    with pytest.raises(ValueError):
        AudioSettings(volume=-1)
    assert not AudioSettings(background_track="none").has_background
    assert AudioSettings(background_track="ocean").has_background


def test_format_clock():
    assert format_clock(300) == "5:00"
    assert format_clock(61) == "1:01"
    assert format_clock(0) == "0:00"
