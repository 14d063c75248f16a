from dataclasses import dataclass, replace
from enum import Enum


class WaveKind(Enum):
    SINE = "sine"
    SQUARE = "square"


@dataclass(frozen=True)
class WaveDescriptor:
    """One periodic signal: frequency (cycles across the display), amplitude, kind, phase."""
    frequency: float
    amplitude: float
    kind: WaveKind = WaveKind.SINE
    phase: float = 0.0

    def with_frequency(self, frequency):
        return replace(self, frequency=float(frequency))

    def with_amplitude(self, amplitude):
        return replace(self, amplitude=float(amplitude))

    def with_kind(self, kind):
        return replace(self, kind=WaveKind(kind))
