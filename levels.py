import math
from dataclasses import dataclass

from wave_data import WaveDescriptor, WaveKind

MIN_LEVEL = 1
MAX_LEVEL = 4

# Interference strength at level 1; scaled by the level's noise multiplier
BASE_INTERFERENCE_STRENGTH = 0.05
NOISE_GROWTH_PER_LEVEL = 4.75

INSTRUCTIONS = {
    "match_sine": "Match the sine wave using Frequency and Amplitude controls. "
                  "You have to get a match of over 90%",
    "match_square": "Match the square wave using Waveform, Frequency and Amplitude",
    "match_complex": "Match the wave - try different combinations!",
    "final_challenge": "Final challenge - match the complex square wave!",
}

# template, instruction key, kind selector shown
_TEMPLATES = {
    1: (WaveDescriptor(2.0, 1.0, WaveKind.SINE, 0.0), "match_sine", False),
    2: (WaveDescriptor(3.0, 1.2, WaveKind.SQUARE, 0.0), "match_square", True),
    3: (WaveDescriptor(5.0, 0.8, WaveKind.SINE, math.pi / 4), "match_complex", True),
    4: (WaveDescriptor(4.5, 1.5, WaveKind.SQUARE, math.pi / 6), "final_challenge", True),
}

PLAYER_START = WaveDescriptor(1.0, 0.5, WaveKind.SINE, 0.0)


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    template: WaveDescriptor
    player_start: WaveDescriptor
    noise_multiplier: float
    show_kind_selector: bool
    instruction_key: str

    @property
    def instruction(self):
        return INSTRUCTIONS[self.instruction_key]

    @property
    def label(self):
        return f"Day {self.level}"

    @property
    def interference_strength(self):
        return BASE_INTERFERENCE_STRENGTH * self.noise_multiplier


def clamp_level(level):
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


def noise_multiplier(level):
    # Grows with the raw level, so days past the last template keep getting noisier
    return 1.0 + (max(MIN_LEVEL, int(level)) - 1) * NOISE_GROWTH_PER_LEVEL


def level_definition(level):
    """Build the definition for ``level``.

    The template table is indexed by the level clamped into [1, 4]; the
    definition keeps the raw level for its label and noise multiplier.
    """
    template, key, show_selector = _TEMPLATES[clamp_level(level)]
    return LevelDefinition(
        level=int(level),
        template=template,
        player_start=PLAYER_START,
        noise_multiplier=noise_multiplier(level),
        show_kind_selector=show_selector,
        instruction_key=key,
    )
