"""CLI entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import threading
from typing import List, Optional

from .audio import NullAudioService, get_audio_service, shutdown_audio_service
from .catalog import default_catalog
from .config import (
    BACKGROUND_CHOICES,
    Config,
    load_config,
    save_config,
)
from .engine import PhaseTimingEngine
from .logging_utils import setup_logging
from .models import AudioSettings, BreathingPattern, EngineState, format_clock
from .scheduler import ThreadingScheduler, VirtualScheduler

logger = logging.getLogger(__name__)


def _describe_pattern(pattern: BreathingPattern) -> str:
    steps = ", ".join(f"{seconds}s {phase.value}" for phase, seconds in pattern.steps)
    return f"{pattern.id}: {pattern.name} - {pattern.description} ({steps})"


def _resolve_config(args: argparse.Namespace) -> Config:
    if args.config and os.path.exists(args.config):
        cfg = load_config(args.config)
    else:
        cfg = Config()
    if getattr(args, "pattern", None):
        cfg.pattern_id = args.pattern
    if getattr(args, "minutes", None) is not None:
        cfg.session_minutes = args.minutes
    if getattr(args, "sound", None):
        cfg.audio.background_track = args.sound
    if getattr(args, "volume", None) is not None:
        cfg.audio.volume = args.volume
    if getattr(args, "no_audio", False):
        cfg.audio.enabled = False
    if getattr(args, "device", None):
        cfg.audio.device_name = args.device
    return cfg


def _add_session_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--config", default="breathpacer_config.yml", help="Config.")
    cmd.add_argument("--pattern", help="Exercise id.")
    cmd.add_argument("--minutes", type=int, help="Session length in minutes.")
    cmd.add_argument("--sound", choices=BACKGROUND_CHOICES, help="Background track.")
    cmd.add_argument("--volume", type=int, help="Volume 0-100.")
    cmd.add_argument("--no-audio", action="store_true", help="Disable phase cues.")


def _print_transitions(start_offset=None):
    last = {"phase": None}

    def _listener(state: EngineState) -> None:
        if state.phase != last["phase"]:
            last["phase"] = state.phase
            prefix = f"t={start_offset():>4.0f}s " if start_offset else ""
            print(
                f"{prefix}{state.phase_label:<7} {state.phase_duration:>2}s"
                f"  remaining {format_clock(state.seconds_remaining)}"
            )

    return _listener


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="breathpacer")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("exercises", help="Print the exercise catalog as JSON.")

    show_cmd = sub.add_parser("show")
    show_cmd.add_argument("exercise_id", help="Exercise id.")

    run_cmd = sub.add_parser("run")
    _add_session_args(run_cmd)
    run_cmd.add_argument("--device", help="Output device name substring.")

    sim_cmd = sub.add_parser("simulate")
    _add_session_args(sim_cmd)
    sim_cmd.add_argument(
        "--seconds", type=int, help="Seconds to simulate. Defaults to the session."
    )

    config_cmd = sub.add_parser("config")
    config_cmd.add_argument("--config", default="breathpacer_config.yml", help="Config.")

    gui_cmd = sub.add_parser("gui")
    gui_cmd.add_argument("--config", default="breathpacer_config.yml", help="Config.")

    args = parser.parse_args(argv)
    catalog = default_catalog()

    if args.command == "exercises":
        print(json.dumps(catalog.to_payload(), indent=2))
        return 0

    if args.command == "show":
        pattern = catalog.get_exercise(args.exercise_id)
        if pattern is None:
            print(f"Unknown exercise: {args.exercise_id}")
            return 1
        print(_describe_pattern(pattern))
        return 0

    if args.command == "config":
        if os.path.exists(args.config):
            print(f"Config exists: {args.config}")
            return 1
        save_config(args.config, Config())
        print(f"Wrote {args.config}")
        return 0

    if args.command in ("run", "simulate"):
        try:
            cfg = _resolve_config(args)
        except (ValueError, TypeError) as exc:
            print(f"Invalid config: {exc}")
            return 1
        pattern = catalog.get_exercise(cfg.pattern_id)
        if pattern is None:
            print(f"Unknown exercise: {cfg.pattern_id}")
            return 1
        if cfg.session_minutes <= 0:
            print("Session length must be a positive number of minutes.")
            return 1
        try:
            settings = cfg.audio.to_settings()
        except ValueError as exc:
            print(f"Invalid audio settings: {exc}")
            return 1

        if args.command == "simulate":
            if args.seconds is not None and args.seconds < 0:
                print("Seconds to simulate must be >= 0.")
                return 1
            return _simulate(pattern, cfg.session_minutes, args.seconds)
        return _run(pattern, cfg, settings)

    if args.command == "gui":
        from .gui import launch_gui

        cfg = load_config(args.config) if os.path.exists(args.config) else Config()
        launch_gui(cfg, config_path=args.config)
        return 0

    parser.print_help()
    return 0


def _simulate(pattern: BreathingPattern, minutes: int, seconds: Optional[int]) -> int:
    scheduler = VirtualScheduler()
    engine = PhaseTimingEngine(
        pattern,
        minutes,
        AudioSettings(enabled=False),
        NullAudioService(),
        scheduler,
    )
    engine.add_listener(_print_transitions(lambda: scheduler.now))
    print(_describe_pattern(pattern))
    engine.start()
    scheduler.advance(seconds if seconds is not None else minutes * 60)
    state = engine.state
    print(
        f"Stopped at {state.phase_label}, remaining "
        f"{format_clock(state.seconds_remaining)}"
        + (" (running)" if state.is_running else "")
    )
    return 0


def _run(pattern: BreathingPattern, cfg: Config, settings: AudioSettings) -> int:
    _logger, log_path = setup_logging(cfg.log_dir)
    audio = get_audio_service(device_name=cfg.audio.device_name)
    done = threading.Event()

    def _watch(state: EngineState) -> None:
        if not state.is_running and state.seconds_remaining == 0:
            done.set()

    engine = PhaseTimingEngine(
        pattern, cfg.session_minutes, settings, audio, ThreadingScheduler()
    )
    engine.add_listener(_print_transitions())
    engine.add_listener(_watch)
    print(_describe_pattern(pattern))
    print(f"Log: {log_path}")
    logger.info("CLI session: %s for %s min", pattern.id, cfg.session_minutes)
    try:
        engine.start()
        while not done.wait(0.5):
            pass
        print("Session complete.")
    except KeyboardInterrupt:
        print("Stopped.")
    finally:
        engine.close()
        shutdown_audio_service()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
