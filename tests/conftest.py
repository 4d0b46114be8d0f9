import pytest

from breathpacer.audio import AudioService
from breathpacer.catalog import default_catalog
from breathpacer.engine import PhaseTimingEngine
from breathpacer.models import AudioSettings
from breathpacer.scheduler import VirtualScheduler


class RecordingAudio(AudioService):
    def __init__(self):
        self.calls = []

    def play_cue(self, phase, volume):
        self.calls.append(("cue", phase, volume))

    def play_background(self, track_id, volume):
        self.calls.append(("background", track_id, volume))

    def stop_background(self):
        self.calls.append(("stop_background",))

    def stop_cues(self):
        self.calls.append(("stop_cues",))

    def set_volume(self, volume):
        self.calls.append(("volume", volume))

    def names(self):
        return [call[0] for call in self.calls]

    def cues(self):
        return [call[1] for call in self.calls if call[0] == "cue"]


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def make_engine(audio, scheduler):
    def _make(
        pattern_id="box-breathing",
        minutes=5,
        settings=None,
        on_reset=None,
    ):
        pattern = default_catalog().get_exercise(pattern_id)
        return PhaseTimingEngine(
            pattern,
            minutes,
            settings or AudioSettings(enabled=True, background_track="ocean", volume=80),
            audio,
            scheduler,
            on_reset=on_reset,
        )

    return _make
