import pytest

from breathpacer.catalog import default_catalog
from breathpacer.engine import PhaseTimingEngine
from breathpacer.models import AudioSettings, BreathingPattern, Phase


def _record_phases(engine):
    phases = []

    def _listener(state):
        if not phases or phases[-1] != state.phase:
            phases.append(state.phase)

    engine.add_listener(_listener)
    return phases


def test_478_scenario_skips_hold2(make_engine, scheduler):
    engine = make_engine("4-7-8", minutes=1)
    engine.start()

    scheduler.advance(4)
    assert engine.state.phase == Phase.HOLD1
    assert engine.state.seconds_remaining == 56

    scheduler.advance(7)
    assert engine.state.phase == Phase.EXHALE
    assert engine.state.seconds_remaining == 49

    scheduler.advance(8)
    assert engine.state.phase == Phase.INHALE
    assert engine.state.phase_duration == 4
    assert engine.state.seconds_remaining == 41


def test_box_breathing_visits_each_phase_once_in_16_seconds(make_engine, scheduler):
    engine = make_engine("box-breathing")
    phases = _record_phases(engine)
    engine.start()
    scheduler.advance(16)
    assert phases == [Phase.INHALE, Phase.HOLD1, Phase.EXHALE, Phase.HOLD2, Phase.INHALE]


def test_zero_holds_alternate_inhale_exhale(make_engine, scheduler):
    engine = make_engine("energizing", minutes=1)
    phases = _record_phases(engine)
    engine.start()
    scheduler.advance(40)
    assert set(phases) == {Phase.INHALE, Phase.EXHALE}
    for current, following in zip(phases, phases[1:]):
        assert current != following


def test_zero_hold1_never_observed(audio, scheduler):
    pattern = BreathingPattern(
        id="custom", name="Custom", inhale=3, hold1=0, exhale=3, hold2=2
    )
    engine = PhaseTimingEngine(pattern, 1, AudioSettings(), audio, scheduler)
    phases = _record_phases(engine)
    engine.start()
    scheduler.advance(50)
    assert Phase.HOLD1 not in phases
    assert Phase.HOLD2 in phases


def test_start_is_idempotent(make_engine, audio):
    engine = make_engine()
    engine.start()
    generation = engine.generation
    engine.start()
    assert engine.generation == generation
    assert audio.names().count("cue") == 1
    assert audio.names().count("background") == 1


def test_start_plays_background_and_cue(make_engine, audio, scheduler):
    engine = make_engine()
    engine.start()
    assert ("background", "ocean", 80) in audio.calls
    assert audio.cues() == [Phase.INHALE]
    scheduler.advance(4)
    assert audio.cues() == [Phase.INHALE, Phase.HOLD1]


def test_cues_not_played_when_audio_disabled(make_engine, audio, scheduler):
    engine = make_engine(settings=AudioSettings(enabled=False, background_track="none"))
    engine.start()
    scheduler.advance(20)
    assert audio.cues() == []
    assert "background" not in audio.names()


def test_pause_twice_is_idempotent(make_engine, audio, scheduler):
    engine = make_engine()
    engine.start()
    scheduler.advance(5)
    engine.pause()
    state = engine.state
    generation = engine.generation
    calls = list(audio.calls)

    engine.pause()
    assert engine.state == state
    assert engine.generation == generation
    assert audio.calls == calls


def test_pause_stops_timers_and_cues_but_not_background(make_engine, audio, scheduler):
    engine = make_engine()
    engine.start()
    scheduler.advance(5)
    engine.pause()
    frozen = engine.state
    scheduler.advance(30)
    assert engine.state == frozen
    assert not frozen.is_running
    assert "stop_cues" in audio.names()
    assert "stop_background" not in audio.names()


def test_resume_restarts_current_phase_from_full_duration(make_engine, scheduler):
    engine = make_engine()
    engine.start()
    scheduler.advance(6)
    engine.pause()
    assert engine.state.phase == Phase.HOLD1
    engine.start()
    scheduler.advance(3)
    assert engine.state.phase == Phase.HOLD1
    scheduler.advance(1)
    assert engine.state.phase == Phase.EXHALE


def test_toggle_play_pause_stops_background(make_engine, audio):
    engine = make_engine()
    engine.toggle_play_pause()
    assert engine.is_running
    engine.toggle_play_pause()
    assert not engine.is_running
    assert audio.names()[-2:] == ["stop_cues", "stop_background"]


@pytest.mark.parametrize("advance_by", [0, 3, 6, 13, 25])
@pytest.mark.parametrize("pause_first", [False, True])
def test_reset_restores_initial_state(make_engine, scheduler, advance_by, pause_first):
    resets = []
    engine = make_engine(minutes=2, on_reset=lambda: resets.append(True))
    engine.start()
    scheduler.advance(advance_by)
    if pause_first:
        engine.pause()

    engine.reset()

    state = engine.state
    assert state.seconds_remaining == 120
    assert state.phase == Phase.INHALE
    assert state.phase_label == "Inhale"
    assert state.phase_duration == 4
    assert not state.is_running
    assert resets == [True]

    scheduler.advance(30)
    assert engine.state == state


def test_session_end_pauses_and_stays_at_zero(make_engine, audio, scheduler):
    engine = make_engine("4-7-8", minutes=1)
    engine.start()
    scheduler.advance(60)
    state = engine.state
    assert state.seconds_remaining == 0
    assert not state.is_running
    assert audio.names()[-2:] == ["stop_cues", "stop_background"]

    cue_count = len(audio.cues())
    scheduler.advance(60)
    assert engine.state == state
    assert len(audio.cues()) == cue_count


def test_start_after_completion_restores_session(make_engine, scheduler):
    engine = make_engine(minutes=1)
    engine.start()
    scheduler.advance(60)
    engine.start()
    assert engine.is_running
    assert engine.state.seconds_remaining == 60


def test_pattern_change_rearms_with_new_duration(make_engine, audio, scheduler):
    engine = make_engine("box-breathing")
    engine.start()
    scheduler.advance(5)
    assert engine.state.phase == Phase.HOLD1

    engine.set_pattern(default_catalog().get_exercise("4-7-8"))
    assert engine.state.phase_duration == 7
    assert audio.cues()[-1] == Phase.HOLD1

    # the old 4s hold would have ended at t=8
    scheduler.advance(6.5)
    assert engine.state.phase == Phase.HOLD1
    scheduler.advance(0.5)
    assert engine.state.phase == Phase.EXHALE
    assert engine.state.phase_duration == 8


def test_pattern_change_skips_phase_that_became_zero(make_engine, scheduler):
    engine = make_engine("box-breathing")
    engine.start()
    scheduler.advance(13)
    assert engine.state.phase == Phase.HOLD2

    engine.set_pattern(default_catalog().get_exercise("4-7-8"))
    assert engine.state.phase == Phase.INHALE
    assert engine.state.phase_duration == 4
    scheduler.advance(4)
    assert engine.state.phase == Phase.HOLD1


def test_pattern_change_while_idle_updates_duration_only(make_engine, scheduler):
    engine = make_engine("box-breathing")
    engine.set_pattern(default_catalog().get_exercise("deep-calm"))
    assert engine.state.phase_duration == 6
    assert not engine.is_running
    assert scheduler.pending == 0


def test_session_duration_change_idle_and_running(make_engine, scheduler):
    engine = make_engine(minutes=5)
    engine.set_session_duration(10)
    assert engine.state.seconds_remaining == 600

    engine.start()
    scheduler.advance(2)
    engine.set_session_duration(3)
    assert engine.state.seconds_remaining == 598
    engine.reset()
    assert engine.state.seconds_remaining == 180


def test_disabling_audio_silences_without_pausing(make_engine, audio, scheduler):
    engine = make_engine()
    engine.start()
    engine.set_audio_settings(AudioSettings(enabled=False, background_track="ocean"))
    assert audio.names()[-1] == "stop_cues"
    assert engine.is_running
    scheduler.advance(8)
    assert audio.cues() == [Phase.INHALE]


def test_background_change_while_running(make_engine, audio, scheduler):
    engine = make_engine()
    engine.start()
    scheduler.advance(2)
    engine.set_audio_settings(AudioSettings(background_track="forest", volume=80))
    assert audio.calls[-2:] == [("stop_background",), ("background", "forest", 80)]

    engine.set_audio_settings(AudioSettings(background_track="none", volume=80))
    assert audio.calls[-1] == ("stop_background",)
    assert engine.state.phase == Phase.INHALE
    scheduler.advance(2)
    assert engine.state.phase == Phase.HOLD1


def test_volume_change_reapplies_to_playing_track(make_engine, audio):
    engine = make_engine()
    engine.start()
    engine.set_audio_settings(AudioSettings(background_track="ocean", volume=30))
    assert audio.calls[-1] == ("volume", 30)
    assert audio.names().count("background") == 1


def test_volume_change_without_track_does_nothing(make_engine, audio):
    engine = make_engine(settings=AudioSettings(background_track="none"))
    engine.start()
    calls = list(audio.calls)
    engine.set_audio_settings(AudioSettings(background_track="none", volume=10))
    assert audio.calls == calls


def test_stale_generation_callback_is_ignored(make_engine, scheduler):
    engine = make_engine()
    engine.start()
    old_generation = engine.generation
    engine.pause()
    engine.start()
    state = engine.state

    engine._on_phase_timer(old_generation)
    engine._on_tick(old_generation)
    assert engine.state == state


def test_listener_failure_does_not_stop_session(make_engine, scheduler):
    engine = make_engine()

    def _broken(_state):
        raise RuntimeError("boom")

    engine.add_listener(_broken)
    engine.start()
    scheduler.advance(4)
    assert engine.state.phase == Phase.HOLD1
    engine.remove_listener(_broken)


def test_invalid_inputs_fail_fast(audio, scheduler):
    pattern = default_catalog().get_exercise("box-breathing")
    with pytest.raises(ValueError):
        PhaseTimingEngine(pattern, 0, AudioSettings(), audio, scheduler)
    with pytest.raises(TypeError):
        PhaseTimingEngine(None, 5, AudioSettings(), audio, scheduler)
    engine = PhaseTimingEngine(pattern, 5, AudioSettings(), audio, scheduler)
    with pytest.raises(ValueError):
        engine.set_session_duration(-1)
