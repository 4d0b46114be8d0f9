"""Tkinter GUI for a guided breathing session."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .audio import get_audio_service, shutdown_audio_service
from .catalog import default_catalog
from .config import (
    BACKGROUND_CHOICES,
    SESSION_MINUTE_CHOICES,
    Config,
    save_config,
)
from .engine import PhaseTimingEngine
from .logging_utils import setup_logging
from .models import AudioSettings, EngineState, Phase, format_clock
from .scheduler import TkScheduler

CANVAS_SIZE = 320
CIRCLE_SMALL = 70
CIRCLE_LARGE = 120
ANIMATION_STEP_MS = 50
RING_RADIUS = CIRCLE_LARGE + 24
RING_WIDTH = 6

PHASE_COLORS = {
    "primary": "#00e0ff",
    "secondary": "#b48bff",
    "accent": "#ffb86b",
    "success": "#5ee6a0",
}


def ring_extent(elapsed_s: float, duration_s: float) -> float:
    """Clockwise arc extent in degrees for a phase that is ``elapsed_s`` in.

    Tk wraps a full 360 to 0, so a finished phase stops just short of it.
    """
    if duration_s <= 0:
        return 0.0
    fraction = min(max(elapsed_s / duration_s, 0.0), 1.0)
    return -359.9 * fraction


def launch_gui(
    config: Optional[Config] = None,
    config_path: str = "breathpacer_config.yml",
) -> None:
    import tkinter as tk
    from tkinter import messagebox, ttk

    config = config or Config()
    logger, _log_path = setup_logging(log_dir=config.log_dir, level=logging.DEBUG)

    def _thread_excepthook(args) -> None:
        logger.exception(
            "Thread exception",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    threading.excepthook = _thread_excepthook

    root = tk.Tk()
    root.title("breathpacer")
    root.resizable(False, False)
    root.configure(bg="#0b0f14")

    style = ttk.Style(root)
    try:
        style.theme_use("clam")
    except tk.TclError:
        pass
    style.configure("TFrame", background="#0b0f14")
    style.configure("TLabel", background="#0b0f14", foreground="#d8e1ff")
    style.configure("TCheckbutton", background="#0b0f14", foreground="#9ad1ff")
    style.configure(
        "TButton",
        background="#132033",
        foreground="#e6f1ff",
        borderwidth=1,
        relief="flat",
    )
    style.map(
        "TButton",
        background=[("active", "#1b2a44")],
        foreground=[("active", "#ffffff")],
    )

    catalog = default_catalog()
    pattern = catalog.get_exercise(config.pattern_id) or catalog.list_exercises()[0]
    try:
        settings = config.audio.to_settings()
    except ValueError as exc:
        logger.warning("Invalid audio settings in config, using defaults: %s", exc)
        settings = AudioSettings()

    audio = get_audio_service(device_name=config.audio.device_name)
    engine = PhaseTimingEngine(
        pattern,
        config.session_minutes,
        settings,
        audio,
        TkScheduler(root),
        on_reset=lambda: logger.info("Reset requested"),
    )

    label_var = tk.StringVar(value="")
    duration_var = tk.StringVar(value="")
    clock_var = tk.StringVar(value="")
    pattern_var = tk.StringVar(value=pattern.id)
    minutes_var = tk.StringVar(value=str(config.session_minutes))
    sound_var = tk.StringVar(value=settings.background_track)
    audio_var = tk.BooleanVar(value=settings.enabled)
    volume_var = tk.IntVar(value=settings.volume)
    play_text = tk.StringVar(value="Start")

    anim = {"radius": float(CIRCLE_SMALL), "target": float(CIRCLE_SMALL), "step": 0.0}
    ring_state = {"key": None, "started": None, "duration": 0}
    fullscreen = {"on": False}

    frame = ttk.Frame(root, padding=16)
    frame.pack(fill="both", expand=True)

    ttk.Label(frame, textvariable=label_var, font=("Segoe UI", 20)).pack()
    ttk.Label(frame, textvariable=duration_var).pack()

    canvas = tk.Canvas(
        frame,
        width=CANVAS_SIZE,
        height=CANVAS_SIZE,
        bg="#0b0f14",
        highlightthickness=0,
    )
    canvas.pack(pady=8)
    center = CANVAS_SIZE / 2
    canvas.create_oval(
        center - RING_RADIUS,
        center - RING_RADIUS,
        center + RING_RADIUS,
        center + RING_RADIUS,
        outline="#0f1a2a",
        width=RING_WIDTH,
    )
    ring = canvas.create_arc(
        center - RING_RADIUS,
        center - RING_RADIUS,
        center + RING_RADIUS,
        center + RING_RADIUS,
        start=90,
        extent=0,
        style="arc",
        outline="#00e0ff",
        width=RING_WIDTH,
    )
    circle = canvas.create_oval(0, 0, 0, 0, outline="", fill="#00e0ff")
    canvas.create_text(
        CANVAS_SIZE / 2,
        CANVAS_SIZE / 2,
        text="",
        fill="#0b0f14",
        tags=("clock",),
        font=("Segoe UI", 24),
    )

    def _draw_circle() -> None:
        c = CANVAS_SIZE / 2
        r = anim["radius"]
        canvas.coords(circle, c - r, c - r, c + r, c + r)
        canvas.itemconfigure("clock", text=clock_var.get())
        canvas.tag_raise("clock")

    def _animate() -> None:
        diff = anim["target"] - anim["radius"]
        if abs(diff) > abs(anim["step"]) and anim["step"]:
            anim["radius"] += anim["step"]
        else:
            anim["radius"] = anim["target"]
        if ring_state["started"] is not None:
            elapsed = time.monotonic() - ring_state["started"]
            canvas.itemconfigure(
                ring, extent=ring_extent(elapsed, ring_state["duration"])
            )
        _draw_circle()
        root.after(ANIMATION_STEP_MS, _animate)

    def _sync_ring(state: EngineState) -> None:
        # a new phase, a re-armed phase timer or a stop all restart the sweep
        key = (state.phase, engine.generation, state.is_running)
        if key == ring_state["key"]:
            return
        ring_state["key"] = key
        ring_state["duration"] = state.phase_duration
        if state.is_running:
            ring_state["started"] = time.monotonic()
        else:
            ring_state["started"] = None
            canvas.itemconfigure(ring, extent=0)

    def _render(state: EngineState) -> None:
        label_var.set(state.phase_label)
        duration_var.set(f"{state.phase_duration}s")
        clock_var.set(format_clock(state.seconds_remaining))
        play_text.set("Pause" if state.is_running else "Start")
        expanded = state.phase in (Phase.INHALE, Phase.HOLD1)
        anim["target"] = float(CIRCLE_LARGE if expanded else CIRCLE_SMALL)
        if state.is_running:
            ticks = max(state.phase_duration * 1000 / ANIMATION_STEP_MS, 1)
            anim["step"] = (anim["target"] - anim["radius"]) / ticks
        else:
            anim["step"] = 0.0
            anim["radius"] = anim["target"]
        color = PHASE_COLORS.get(engine.pattern.color_theme, "#00e0ff")
        canvas.itemconfigure(circle, fill=color)
        canvas.itemconfigure(ring, outline=color)
        _sync_ring(state)
        _draw_circle()

    def _on_state(state: EngineState) -> None:
        if threading.current_thread() is threading.main_thread():
            _render(state)
        else:
            root.after(0, lambda: _render(state))

    engine.add_listener(_on_state)

    def _current_settings() -> AudioSettings:
        return AudioSettings(
            enabled=bool(audio_var.get()),
            background_track=sound_var.get(),
            volume=int(volume_var.get()),
        )

    def _toggle() -> None:
        try:
            engine.toggle_play_pause()
        except RuntimeError as exc:
            messagebox.showerror("breathpacer", str(exc))

    def _on_pattern(_event=None) -> None:
        selected = catalog.get_exercise(pattern_var.get())
        if selected is not None:
            logger.info("Pattern selected: %s", selected.id)
            engine.set_pattern(selected)

    def _on_minutes(_event=None) -> None:
        engine.set_session_duration(int(minutes_var.get()))

    def _on_audio_change(*_args) -> None:
        engine.set_audio_settings(_current_settings())

    controls = ttk.Frame(frame)
    controls.pack(pady=4)
    ttk.Button(controls, textvariable=play_text, command=_toggle).pack(
        side="left", padx=4
    )
    ttk.Button(controls, text="Reset", command=engine.reset).pack(side="left", padx=4)

    def _toggle_fullscreen(_event=None) -> None:
        fullscreen["on"] = not fullscreen["on"]
        root.attributes("-fullscreen", fullscreen["on"])
        logger.info("Fullscreen %s", "on" if fullscreen["on"] else "off")

    def _exit_fullscreen(_event=None) -> None:
        if fullscreen["on"]:
            _toggle_fullscreen()

    ttk.Button(controls, text="Fullscreen", command=_toggle_fullscreen).pack(
        side="left", padx=4
    )

    options = ttk.Frame(frame)
    options.pack(fill="x", pady=8)

    ttk.Label(options, text="Exercise").grid(row=0, column=0, sticky="w")
    pattern_box = ttk.Combobox(
        options, textvariable=pattern_var, values=catalog.ids(), state="readonly"
    )
    pattern_box.grid(row=0, column=1, sticky="ew", pady=2)
    pattern_box.bind("<<ComboboxSelected>>", _on_pattern)

    ttk.Label(options, text="Minutes").grid(row=1, column=0, sticky="w")
    minutes_box = ttk.Combobox(
        options,
        textvariable=minutes_var,
        values=[str(m) for m in SESSION_MINUTE_CHOICES],
        state="readonly",
    )
    minutes_box.grid(row=1, column=1, sticky="ew", pady=2)
    minutes_box.bind("<<ComboboxSelected>>", _on_minutes)

    ttk.Label(options, text="Sound").grid(row=2, column=0, sticky="w")
    sound_box = ttk.Combobox(
        options, textvariable=sound_var, values=list(BACKGROUND_CHOICES), state="readonly"
    )
    sound_box.grid(row=2, column=1, sticky="ew", pady=2)
    sound_box.bind("<<ComboboxSelected>>", _on_audio_change)

    ttk.Label(options, text="Volume").grid(row=3, column=0, sticky="w")
    ttk.Scale(
        options,
        from_=0,
        to=100,
        value=settings.volume,
        orient="horizontal",
        command=lambda value: (volume_var.set(int(float(value))), _on_audio_change()),
    ).grid(row=3, column=1, sticky="ew", pady=2)

    ttk.Checkbutton(
        options, text="Phase cues", variable=audio_var, command=_on_audio_change
    ).grid(row=4, column=1, sticky="w", pady=2)
    options.columnconfigure(1, weight=1)

    def _on_close() -> None:
        logger.info("GUI closing")
        engine.close()
        shutdown_audio_service()
        config.pattern_id = engine.pattern.id
        config.session_minutes = engine.session_duration_minutes
        config.audio.enabled = engine.audio_settings.enabled
        config.audio.background_track = engine.audio_settings.background_track
        config.audio.volume = engine.audio_settings.volume
        try:
            save_config(config_path, config)
        except OSError as exc:
            logger.warning("Could not save settings: %s", exc)
        root.destroy()

    root.bind("<space>", lambda _event: _toggle())
    root.bind("<F11>", _toggle_fullscreen)
    root.bind("<Escape>", _exit_fullscreen)
    _render(engine.state)
    _animate()
    logger.info("GUI ready: %s", pattern.id)
    root.protocol("WM_DELETE_WINDOW", _on_close)
    root.mainloop()
