# state.py
from dataclasses import dataclass, field

from errors import InvalidSettingsError


@dataclass
class AudioSettings:
    # --- Stream ---
    sample_rate: int = 44100
    buffer_size: int = 256
    channels: int = 2

    # --- Mix (weights must sum below 1.0 to stay unclipped) ---
    noise_volume: float = 0.1
    carrier_volume: float = 0.3
    lower_octave_volume: float = 0.2
    lower_octave_multiplier: float = 0.5
    higher_octave_volume: float = 0.0
    higher_octave_multiplier: float = 2.0

    fade_out_duration: float = 0.5   # Seconds

    # --- Pitch mapping: far from match -> close to match ---
    min_frequency: float = 200.0
    max_frequency: float = 700.0

    # --- Wobble LFO ---
    min_wobble_frequency: float = 2.0
    max_wobble_frequency: float = 10.0
    wobble_depth: float = 0.02       # Fraction of the carrier frequency

    @property
    def mix_headroom(self):
        return 1.0 - (self.noise_volume + self.carrier_volume
                      + self.lower_octave_volume + self.higher_octave_volume)


@dataclass
class TraceSettings:
    points: int = 100
    width: float = 10.0              # Display width in plot units

    # --- Slow "wobble" noise ---
    noise_scale: float = 1.0
    noise_speed: float = 1.0
    noise_strength: float = 0.1
    noise_offset: float = 0.0        # 0 picks a random offset per renderer

    # --- Fast "interference" noise ---
    interference_scale: float = 20.0
    interference_speed: float = 15.0
    interference_strength: float = 0.05

    # --- Stroke ---
    line_width: float = 2.0
    color: tuple = (0, 255, 204)


@dataclass
class GameSettings:
    win_threshold: float = 0.9
    signal_fade_duration: float = 1.0
    win_delay: float = 4.0

    # --- Slider bounds ---
    min_frequency: float = 0.5
    max_frequency: float = 10.0
    min_amplitude: float = 0.1
    max_amplitude: float = 2.0

    # --- Win message ---
    win_message: str = "SIGNAL LOCKED // UPLINK ESTABLISHED"
    typewriter_speed: float = 0.05
    blink_interval: float = 0.5


@dataclass
class AppState:
    audio: AudioSettings = field(default_factory=AudioSettings)
    template_trace: TraceSettings = field(default_factory=TraceSettings)
    player_trace: TraceSettings = field(
        default_factory=lambda: TraceSettings(color=(80, 200, 255)))
    game: GameSettings = field(default_factory=GameSettings)

    def validate(self):
        a = self.audio
        if a.sample_rate <= 0 or a.buffer_size <= 0 or a.channels <= 0:
            raise InvalidSettingsError("sample_rate, buffer_size and channels must be positive")
        if a.min_frequency <= 0:
            raise InvalidSettingsError("audio min_frequency must be positive")
        if a.min_frequency > a.max_frequency:
            raise InvalidSettingsError("audio min_frequency exceeds max_frequency")
        if a.min_wobble_frequency > a.max_wobble_frequency:
            raise InvalidSettingsError("min_wobble_frequency exceeds max_wobble_frequency")
        if a.fade_out_duration < 0:
            raise InvalidSettingsError("fade_out_duration must not be negative")
        if not 0.0 <= a.wobble_depth < 1.0:
            raise InvalidSettingsError("wobble_depth must be in [0, 1)")
        if a.mix_headroom < 0:
            raise InvalidSettingsError("mix volumes sum above 1.0 and would clip")

        for trace in (self.template_trace, self.player_trace):
            if trace.points < 2:
                raise InvalidSettingsError("a trace needs at least 2 points")

        g = self.game
        if not 0.0 < g.win_threshold <= 1.0:
            raise InvalidSettingsError("win_threshold must be in (0, 1]")
        if g.min_frequency > g.max_frequency or g.min_amplitude > g.max_amplitude:
            raise InvalidSettingsError("slider bounds are inverted")
        if g.signal_fade_duration > g.win_delay:
            raise InvalidSettingsError("signal_fade_duration must fit inside win_delay")
        return self
