import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from console_effect import ConsoleEffect
from levels import level_definition
from scoring import match_band, match_label, match_score
from state import GameSettings
from timers import Countdown
from wave_data import WaveKind

logger = logging.getLogger(__name__)


class GameState(Enum):
    SETUP = "setup"
    ACTIVE = "active"
    WON = "won"
    FADING_OUT = "fading_out"
    EXITED = "exited"
    ABORTED = "aborted"


FINISHED = (GameState.EXITED, GameState.ABORTED)


def clamp(value, low, high):
    return max(low, min(high, float(value)))


@runtime_checkable
class DisplaySink(Protocol):
    """Where the level state machine shows its text and control state."""

    def set_level_label(self, text: str) -> None: ...

    def set_instruction(self, text: str, visible: bool) -> None: ...

    def set_match(self, text: str, band: str) -> None: ...

    def set_kind_selector_visible(self, visible: bool) -> None: ...

    def set_control_ranges(self, freq_min: float, freq_max: float,
                           amp_min: float, amp_max: float) -> None: ...

    def set_controls(self, frequency: float, amplitude: float,
                     kind: WaveKind, enabled: bool) -> None: ...

    def set_win_message(self, text: str, visible: bool) -> None: ...


class LevelStateMachine:
    """Runs one level of the tuning minigame from setup to exit.

    Everything it talks to is passed in. ``oscillator``, the two renderers and
    ``display`` (a DisplaySink) may be None; calls to a missing collaborator
    are skipped.

    All methods run on the UI thread. update(dt) must be called once per frame.
    """

    def __init__(self, level_source, on_level_won=None, on_return=None,
                 oscillator=None, template_renderer=None, player_renderer=None,
                 display=None, settings=None):
        self.level_source = level_source
        self.on_level_won = on_level_won
        self.on_return = on_return
        self.oscillator = oscillator
        self.template_renderer = template_renderer
        self.player_renderer = player_renderer
        if display is not None and not isinstance(display, DisplaySink):
            raise TypeError(f"{type(display).__name__} does not implement DisplaySink")
        self.display = display
        self.settings = settings or GameSettings()

        self.state = GameState.SETUP
        self.definition = None
        self.template = None
        self.player = None
        self.score = 0.0
        self.fade_value = 1.0
        self.clock = 0.0

        self.console = ConsoleEffect(on_change=self._show_win_message)
        self._fade_timer = None
        self._win_timer = None
        self._won_reported = False
        self._missing = set()

    @property
    def level(self):
        return self.definition.level if self.definition is not None else None

    # --- LIFECYCLE ---

    def start(self):
        self.setup(self.level_source())

    def setup(self, level):
        self._cancel_timers()
        self.console.stop()
        self._show_win_message("", False)
        self.state = GameState.SETUP

        d = level_definition(level)
        self.definition = d
        self.template = d.template
        self.player = d.player_start
        self.score = 0.0
        self._won_reported = False
        logger.info("Setting up level %d (noise x%.2f)", d.level, d.noise_multiplier)

        g = self.settings
        self._call(self.display, "set_level_label", d.label)
        self._call(self.display, "set_instruction", d.instruction, True)
        self._call(self.display, "set_kind_selector_visible", d.show_kind_selector)
        self._call(self.display, "set_control_ranges",
                   g.min_frequency, g.max_frequency, g.min_amplitude, g.max_amplitude)
        self._push_controls(enabled=True)

        for renderer in self._renderers():
            renderer.interference_strength = d.interference_strength
            if renderer.fade_baseline is not None:
                renderer.set_fade(1.0)
        self.fade_value = 1.0

        self._call(self.oscillator, "start")
        self.state = GameState.ACTIVE
        self._check_match()

    def update(self, dt, time=None):
        self.clock += dt
        if time is None:
            time = self.clock

        self._call(self.oscillator, "tick", dt)
        self.console.tick(dt)

        if self._fade_timer is not None:
            self._fade_timer.advance(dt)
            self._apply_fade(1.0 - self._fade_timer.progress)
            if not self._fade_timer.active:
                self._fade_timer = None

        if self._win_timer is not None:
            self._win_timer.advance(dt)

        if self.state == GameState.ACTIVE:
            self._check_match()

        if self.definition is not None:
            if self.template_renderer is not None:
                self.template_renderer.render(self.template, time)
            if self.player_renderer is not None:
                self.player_renderer.render(self.player, time)

    # --- UI EVENTS ---

    def on_frequency_changed(self, value):
        if self.state != GameState.ACTIVE:
            return
        g = self.settings
        self.player = self.player.with_frequency(clamp(value, g.min_frequency, g.max_frequency))
        self._check_match()

    def on_amplitude_changed(self, value):
        if self.state != GameState.ACTIVE:
            return
        g = self.settings
        self.player = self.player.with_amplitude(clamp(value, g.min_amplitude, g.max_amplitude))
        self._check_match()

    def on_wave_kind_changed(self, kind):
        if self.state != GameState.ACTIVE:
            return
        self.player = self.player.with_kind(WaveKind(kind))
        self._push_controls(enabled=True)
        self._check_match()

    def request_exit(self):
        if self.state in FINISHED:
            return
        logger.info("Exit requested in state %s", self.state.value)
        self._cancel_timers()
        self.console.stop()
        self._call(self.oscillator, "stop")
        self.state = GameState.ABORTED
        self._notify(self.on_return)

    on_exit_requested = request_exit

    # --- MATCHING ---

    def _check_match(self):
        score = match_score(self.player, self.template)
        self.score = score
        self._call(self.oscillator, "set_target_match", score)
        self._call(self.display, "set_match", match_label(score),
                   match_band(score, self.settings.win_threshold))

        if score >= self.settings.win_threshold:
            self._win()

    def _win(self):
        if self.state != GameState.ACTIVE:
            return
        self.state = GameState.WON
        g = self.settings
        logger.info("Level %d matched (score %.3f)", self.level, self.score)

        self._call(self.oscillator, "stop")
        self._push_controls(enabled=False)
        self._call(self.display, "set_kind_selector_visible", False)
        self._call(self.display, "set_instruction", self.definition.instruction, False)

        console = self.console
        console.play_typewriter(g.win_message, g.typewriter_speed,
                                on_complete=lambda: console.start_blinking(g.blink_interval))

        self._fade_timer = Countdown(g.signal_fade_duration)
        self._win_timer = Countdown(g.win_delay, on_done=self._finish_level)

    def _finish_level(self):
        self._win_timer = None
        self.state = GameState.FADING_OUT
        if not self._won_reported:
            self._won_reported = True
            logger.info("Level %d complete", self.level)
            self._notify(self.on_level_won)
        self.state = GameState.EXITED
        self._notify(self.on_return)

    # --- HELPERS ---

    def _apply_fade(self, value):
        # Never brighten while fading out
        value = max(0.0, min(self.fade_value, value))
        self.fade_value = value
        for renderer in self._renderers():
            renderer.set_fade(value)

    def _cancel_timers(self):
        for timer in (self._fade_timer, self._win_timer):
            if timer is not None:
                timer.cancel()
        self._fade_timer = None
        self._win_timer = None

    def _push_controls(self, enabled):
        p = self.player
        self._call(self.display, "set_controls", p.frequency, p.amplitude, p.kind, enabled)

    def _show_win_message(self, text, visible):
        self._call(self.display, "set_win_message", text, visible)

    def _renderers(self):
        return [r for r in (self.template_renderer, self.player_renderer) if r is not None]

    def _call(self, target, method, *args):
        if target is None:
            if method not in self._missing:
                self._missing.add(method)
                logger.debug("No collaborator wired for %s; skipping", method)
            return None
        return getattr(target, method)(*args)

    def _notify(self, sink):
        if sink is not None:
            sink()
