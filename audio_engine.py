import logging
import math
from dataclasses import dataclass

import numpy as np

from state import AudioSettings
from timers import Countdown

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


class ParamCell:
    """Single-writer / single-reader value slot shared with the audio thread.

    Holds one immutable value. ``set`` is a single attribute rebinding, atomic
    under the GIL, so the audio callback never waits on the UI thread.
    """
    __slots__ = ("_value",)

    def __init__(self, value):
        self._value = value

    def set(self, value):
        self._value = value

    def get(self):
        return self._value


@dataclass(frozen=True)
class Targets:
    frequency: float
    lfo_rate: float


@dataclass(frozen=True)
class Gain:
    playing: bool = False
    fade: float = 0.0
    reset_epoch: int = 0   # Bumped by start() to request a phase reset


def wrap_phase(phase):
    if not math.isfinite(phase):
        return 0.0
    while phase >= TWO_PI:
        phase -= TWO_PI
    while phase < 0.0:
        phase += TWO_PI
    # A tiny negative phase rounds up to exactly 2pi
    if phase >= TWO_PI:
        phase = 0.0
    return phase


def lerp(a, b, t):
    return a + (b - a) * t


class OscillatorBank:
    """Match-feedback tone: noisy carrier plus two octave partials, wobbled by an LFO.

    UI thread: start(), stop(), set_target_match(), tick().
    Audio thread: render() / fill(), reading only the two ParamCells.
    """

    def __init__(self, settings=None, seed=None):
        self.settings = settings or AudioSettings()
        s = self.settings
        self.rng = np.random.default_rng(seed)

        # --- SHARED (UI -> audio) ---
        self._targets = ParamCell(Targets(s.min_frequency, s.min_wobble_frequency))
        self._gain = ParamCell(Gain())

        # --- UI STATE ---
        self._fade = None
        self._reported_errors = 0

        # --- AUDIO STATE ---
        self._phase = 0.0
        self._lower_phase = 0.0
        self._higher_phase = 0.0
        self._wobble_phase = 0.0
        self._seen_epoch = 0
        self._last_fade = 0.0
        self._ramp = np.arange(s.buffer_size, dtype=np.float64)
        self.callback_errors = 0
        self.last_error = None

        self.last_samples = np.zeros(s.buffer_size, dtype=np.float32)

    # --- UI SIDE ---

    def start(self):
        if self._fade is not None:
            self._fade.cancel()
            self._fade = None

        gain = self._gain.get()
        if gain.playing:
            self._gain.set(Gain(True, 1.0, gain.reset_epoch))
            return
        self._gain.set(Gain(True, 1.0, gain.reset_epoch + 1))
        logger.debug("Feedback tone started")

    def stop(self):
        if not self._gain.get().playing or self._fade is not None:
            return
        self._fade = Countdown(self.settings.fade_out_duration, on_done=self._finish_stop)
        logger.debug("Fading out feedback tone over %.2fs", self.settings.fade_out_duration)
        self._fade.advance(0.0)

    def _finish_stop(self):
        epoch = self._gain.get().reset_epoch
        self._gain.set(Gain(False, 0.0, epoch))
        self._fade = None
        logger.debug("Feedback tone stopped")

    def tick(self, dt):
        if self._fade is not None:
            fade = self._fade
            if not fade.advance(dt):
                gain = self._gain.get()
                self._gain.set(Gain(gain.playing, 1.0 - fade.progress, gain.reset_epoch))

        if self.callback_errors > self._reported_errors:
            logger.error("Audio callback failed %d time(s), emitting silence: %r",
                         self.callback_errors - self._reported_errors, self.last_error)
            self._reported_errors = self.callback_errors

    def set_target_match(self, score):
        s = self.settings
        if not math.isfinite(score):
            score = 0.0
        score = max(0.0, min(1.0, score))
        self._targets.set(Targets(
            lerp(s.min_frequency, s.max_frequency, score),
            lerp(s.min_wobble_frequency, s.max_wobble_frequency, score),
        ))

    @property
    def is_playing(self):
        return self._gain.get().playing

    @property
    def is_fading(self):
        return self._fade is not None

    @property
    def fade_multiplier(self):
        return self._gain.get().fade

    @property
    def target_frequency(self):
        return self._targets.get().frequency

    @property
    def target_lfo_rate(self):
        return self._targets.get().lfo_rate

    @property
    def phases(self):
        return (self._phase, self._lower_phase, self._higher_phase, self._wobble_phase)

    # --- AUDIO SIDE ---

    def render(self, frame_count):
        s = self.settings
        gain = self._gain.get()
        targets = self._targets.get()

        if gain.reset_epoch != self._seen_epoch:
            self._seen_epoch = gain.reset_epoch
            self._phase = 0.0
            self._lower_phase = 0.0
            self._higher_phase = 0.0
            self._wobble_phase = 0.0
            self._last_fade = gain.fade

        if not gain.playing or frame_count <= 0:
            self._last_fade = 0.0
            return np.zeros(max(frame_count, 0), dtype=np.float32)

        if frame_count > len(self._ramp):
            self._ramp = np.arange(frame_count, dtype=np.float64)
        ramp = self._ramp[:frame_count]

        # Wobble: per-frame LFO applied multiplicatively to the carrier
        wobble_inc = TWO_PI * targets.lfo_rate / s.sample_rate
        wobble = np.sin(self._wobble_phase + ramp * wobble_inc) * s.wobble_depth
        increments = TWO_PI * targets.frequency * (1.0 + wobble) / s.sample_rate

        # Phase at each frame is the running sum of the increments before it
        travelled = np.cumsum(increments)
        offsets = travelled - increments

        carrier = np.sin(self._phase + offsets)
        lower = np.sin(self._lower_phase + offsets * s.lower_octave_multiplier)
        higher = np.sin(self._higher_phase + offsets * s.higher_octave_multiplier)
        noise = self.rng.uniform(-1.0, 1.0, frame_count)

        mix = (noise * s.noise_volume
               + carrier * s.carrier_volume
               + lower * s.lower_octave_volume
               + higher * s.higher_octave_volume)

        # Ramp the fade across the block so per-tick steps don't click
        mix *= np.linspace(self._last_fade, gain.fade, frame_count)
        self._last_fade = gain.fade

        total = float(travelled[-1])
        self._phase = wrap_phase(self._phase + total)
        self._lower_phase = wrap_phase(self._lower_phase + total * s.lower_octave_multiplier)
        self._higher_phase = wrap_phase(self._higher_phase + total * s.higher_octave_multiplier)
        self._wobble_phase = wrap_phase(self._wobble_phase + frame_count * wobble_inc)

        return mix.astype(np.float32)

    def fill(self, frame_count, channels=None):
        """Interleaved block for an output stream; never raises."""
        channels = channels or self.settings.channels
        try:
            mono = self.render(frame_count)
        except Exception as exc:
            self.callback_errors += 1
            self.last_error = exc
            mono = np.zeros(max(frame_count, 0), dtype=np.float32)

        # Save for visuals
        self.last_samples = mono
        return np.repeat(mono, channels)
