import argparse
import os
import sys
import time

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import sounddevice as sd

from breathpacer.audio import ToneAudioService, build_cue
from breathpacer.audio_utils import to_int16
from breathpacer.models import Phase


def _find_device(match: str | None) -> dict | None:
    if not match:
        return None
    match_lower = match.lower()
    for info in sd.query_devices():
        name = info.get("name", "").lower()
        if match_lower in name and info.get("max_output_channels", 0) > 0:
            return info
    return None


def _describe_device(info: dict, label: str) -> None:
    print(f"{label}: {info.get('name', '')}")
    print(f"Index: {info.get('index', '')}")
    print(f"Host API: {info.get('hostapi', '')}")
    print(f"Max output channels: {info.get('max_output_channels', 0)}")
    print(f"Default sample rate: {info.get('default_samplerate', '')}")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--device", help="Output device name substring.")
    parser.add_argument("--volume", type=int, default=80, help="Volume 0-100.")
    parser.add_argument(
        "--track",
        default="ocean",
        choices=["ocean", "forest", "none"],
        help="Background track to loop after the cues.",
    )
    parser.add_argument("--seconds", type=float, default=4.0, help="Track duration.")
    args = parser.parse_args()

    info = _find_device(args.device)
    if info is None:
        info = sd.query_devices(None, "output")
    _describe_device(info, "Output device")

    service = ToneAudioService(device_name=args.device)
    service.init()
    try:
        for phase in Phase:
            cue = build_cue(phase, args.volume)
            peak = float(np.max(np.abs(cue)))
            pcm_peak = int(np.max(np.abs(to_int16(cue))))
            print(f"Cue {phase.value}: peak {peak:.3f} (pcm {pcm_peak})")
            service.play_cue(phase, args.volume)
            time.sleep(0.6)

        if args.track != "none":
            print(f"Background {args.track} for {args.seconds:.1f}s")
            service.play_background(args.track, args.volume)
            time.sleep(args.seconds / 2)
            print("Halving volume")
            service.set_volume(args.volume // 2)
            time.sleep(args.seconds / 2)
    finally:
        service.shutdown()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
