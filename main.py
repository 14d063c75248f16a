import argparse
import logging
import time

import dearpygui.dearpygui as dpg
import numpy as np

from audio_engine import OscillatorBank
from audio_output import AudioOutput
from errors import AudioDeviceError
from game import DisplaySink, LevelStateMachine
from state import AppState
from wave_data import WaveKind
from wave_renderer import WaveRenderer

logger = logging.getLogger("wave_tuner")

# --- SETTINGS ---
W_WIDTH = 1100
W_HEIGHT = 760
PLOT_HEIGHT = 420

BAND_COLORS = {
    "locked": (0, 255, 0),
    "close": (255, 230, 0),
    "far": (255, 60, 60),
}


class DpgTrace:
    """Line series + theme that a WaveRenderer draws into."""

    def __init__(self, series, color_item, weight_item):
        self.series = series
        self.color_item = color_item
        self.weight_item = weight_item

    def set_points(self, points):
        dpg.set_value(self.series, [points[:, 0].tolist(), points[:, 1].tolist()])

    def set_style(self, style):
        dpg.set_value(self.color_item, list(style.rgba))
        dpg.configure_item(self.weight_item, x=style.width)


class DpgDisplay(DisplaySink):
    """Display sink for the level state machine."""

    def set_level_label(self, text):
        dpg.set_value("level_text", text)

    def set_instruction(self, text, visible):
        dpg.set_value("instruction_text", text)
        dpg.configure_item("instruction_text", show=visible)

    def set_match(self, text, band):
        dpg.set_value("match_text", text)
        dpg.configure_item("match_text", color=BAND_COLORS[band])

    def set_kind_selector_visible(self, visible):
        dpg.configure_item("kind_selector", show=visible)

    def set_control_ranges(self, freq_min, freq_max, amp_min, amp_max):
        dpg.configure_item("frequency_slider", min_value=freq_min, max_value=freq_max)
        dpg.configure_item("amplitude_slider", min_value=amp_min, max_value=amp_max)

    def set_controls(self, frequency, amplitude, kind, enabled):
        dpg.set_value("frequency_slider", frequency)
        dpg.set_value("amplitude_slider", amplitude)
        dpg.configure_item("frequency_slider", enabled=enabled)
        dpg.configure_item("amplitude_slider", enabled=enabled)
        # The selected kind's button appears pressed
        dpg.configure_item("sine_button", enabled=enabled and kind != WaveKind.SINE)
        dpg.configure_item("square_button", enabled=enabled and kind != WaveKind.SQUARE)

    def set_win_message(self, text, visible):
        dpg.set_value("win_text", text)
        dpg.configure_item("win_text", show=visible)


def add_trace(label, y_axis, settings):
    series = dpg.add_line_series([], [], label=label, parent=y_axis)
    with dpg.theme() as theme:
        with dpg.theme_component(dpg.mvLineSeries):
            color_item = dpg.add_theme_color(dpg.mvPlotCol_Line, (*settings.color, 255),
                                             category=dpg.mvThemeCat_Plots)
            weight_item = dpg.add_theme_style(dpg.mvPlotStyleVar_LineWeight, settings.line_width,
                                              category=dpg.mvThemeCat_Plots)
    dpg.bind_item_theme(series, theme)
    return DpgTrace(series, color_item, weight_item)


def build_ui(app):
    """Create the window; returns the template and player trace sinks."""
    g = app.game

    with dpg.window(tag="Primary Window"):
        with dpg.group(horizontal=True):

            # --- LEFT PANEL: CONTROLS ---
            with dpg.child_window(width=320):
                dpg.add_text("", tag="level_text", color=(0, 255, 204))
                dpg.add_separator()
                dpg.add_text("", tag="instruction_text", wrap=300)
                dpg.add_spacer(height=10)

                dpg.add_slider_float(label="Frequency", tag="frequency_slider",
                                     min_value=g.min_frequency, max_value=g.max_frequency,
                                     user_data="frequency")
                dpg.add_slider_float(label="Amplitude", tag="amplitude_slider",
                                     min_value=g.min_amplitude, max_value=g.max_amplitude,
                                     user_data="amplitude")

                with dpg.group(horizontal=True, tag="kind_selector"):
                    dpg.add_button(label="SINE", tag="sine_button", user_data=WaveKind.SINE)
                    dpg.add_button(label="SQUARE", tag="square_button", user_data=WaveKind.SQUARE)

                dpg.add_spacer(height=20)
                dpg.add_text("Match: 0.0%", tag="match_text")
                dpg.add_text("", tag="win_text", color=(0, 255, 0), show=False)

                dpg.add_spacer(height=20)
                dpg.add_button(label="EXIT", tag="exit_button")

            # --- RIGHT PANEL: SIGNALS ---
            with dpg.child_window(width=-1):
                dpg.add_text("Signal")
                half = app.template_trace.width / 2.0
                with dpg.plot(height=PLOT_HEIGHT, width=-1, no_menus=True):
                    dpg.add_plot_axis(dpg.mvXAxis, no_tick_labels=True)
                    dpg.set_axis_limits(dpg.last_item(), -half, half)
                    y_axis = dpg.add_plot_axis(dpg.mvYAxis, label="Amp")
                    dpg.set_axis_limits(y_axis, -2.5, 2.5)
                    template_trace = add_trace("Template", y_axis, app.template_trace)
                    player_trace = add_trace("Yours", y_axis, app.player_trace)

                dpg.add_spacer(height=10)
                dpg.add_text("Feedback Tone (Time Domain)")
                with dpg.plot(height=150, width=-1, no_menus=True):
                    dpg.add_plot_axis(dpg.mvXAxis, no_tick_labels=True)
                    scope_axis = dpg.add_plot_axis(dpg.mvYAxis, label="Amp")
                    dpg.set_axis_limits(scope_axis, -1.0, 1.0)
                    dpg.add_line_series([], [], tag="scope_series", parent=scope_axis)

    return template_trace, player_trace


def wire_controls(machine):
    def on_slider(sender, app_data, user_data):
        if user_data == "frequency":
            machine.on_frequency_changed(app_data)
        else:
            machine.on_amplitude_changed(app_data)

    def on_kind(sender, app_data, user_data):
        machine.on_wave_kind_changed(user_data)

    dpg.set_item_callback("frequency_slider", on_slider)
    dpg.set_item_callback("amplitude_slider", on_slider)
    dpg.set_item_callback("sine_button", on_kind)
    dpg.set_item_callback("square_button", on_kind)
    dpg.set_item_callback("exit_button", lambda: machine.request_exit())


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Tune a noisy signal until it locks onto the template.")
    parser.add_argument("--level", type=int, default=1, help="Day / level number (1-4, higher keeps day 4 with more noise)")
    parser.add_argument("--no-audio", action="store_true", help="Run without the feedback tone")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    app = AppState().validate()

    # --- AUDIO ---
    bank = None
    output = None
    if not args.no_audio:
        bank = OscillatorBank(app.audio)
        try:
            output = AudioOutput(bank).open()
        except AudioDeviceError as exc:
            logger.warning("%s; continuing without sound", exc)

    # --- DPG GUI SETUP ---
    dpg.create_context()
    dpg.configure_app(manual_callback_management=True)
    template_trace, player_trace = build_ui(app)

    def level_won():
        logger.info("Level %d won", args.level)

    def return_to_prior():
        dpg.stop_dearpygui()

    machine = LevelStateMachine(
        level_source=lambda: args.level,
        on_level_won=level_won,
        on_return=return_to_prior,
        oscillator=bank,
        template_renderer=WaveRenderer(app.template_trace, sink=template_trace),
        player_renderer=WaveRenderer(app.player_trace, sink=player_trace),
        display=DpgDisplay(),
        settings=app.game,
    )
    wire_controls(machine)

    dpg.create_viewport(title="Shortwave Tuner", width=W_WIDTH, height=W_HEIGHT)
    dpg.setup_dearpygui()
    dpg.set_primary_window("Primary Window", True)
    dpg.show_viewport()

    machine.start()

    # --- FRAME LOOP ---
    start = last = time.perf_counter()
    try:
        while dpg.is_dearpygui_running():
            dpg.run_callbacks(dpg.get_callback_queue())

            now = time.perf_counter()
            machine.update(now - last, now - start)
            last = now

            if bank is not None:
                signal = bank.last_samples
                dpg.set_value("scope_series", [np.arange(len(signal)).tolist(), signal.tolist()])

            dpg.render_dearpygui_frame()
    finally:
        # --- CLEANUP ---
        if output is not None:
            output.shutdown()
        dpg.destroy_context()


if __name__ == "__main__":
    main()
