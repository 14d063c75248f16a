import math
from dataclasses import dataclass, replace

import numpy as np

from noise import perlin2d
from state import TraceSettings
from wave_data import WaveKind

TWO_PI = 2.0 * math.pi
INTERFERENCE_OFFSET = 50.0


@dataclass(frozen=True)
class TraceStyle:
    width: float
    color: tuple
    alpha: float = 1.0

    @property
    def rgba(self):
        r, g, b = self.color[:3]
        return (r, g, b, int(round(255 * self.alpha)))


def square(values):
    # Zero crossings map to +1
    return np.where(values >= 0.0, 1.0, -1.0)


class WaveRenderer:
    """Samples a WaveDescriptor into a noisy display trace.

    ``sink`` is anything with ``set_points(points)`` and ``set_style(style)``;
    without one, render() just returns the points.
    """

    def __init__(self, settings=None, sink=None, rng=None):
        self.settings = settings or TraceSettings()
        self.sink = sink
        s = self.settings

        self.noise_offset = s.noise_offset
        if self.noise_offset == 0.0:
            # Different offset per trace so two traces never wobble in lockstep
            rng = rng or np.random.default_rng()
            self.noise_offset = float(rng.uniform(0.0, 100.0))

        self.interference_strength = s.interference_strength
        self.style = TraceStyle(width=s.line_width, color=tuple(s.color))
        self.fade_baseline = None

        step = s.width / (s.points - 1)
        self._index = np.arange(s.points, dtype=np.float64)
        self._t = self._index / (s.points - 1)
        self._x = -s.width / 2.0 + self._index * step

    def sample(self, descriptor):
        """Clean signal values across the display, no noise."""
        angle = self._t * descriptor.frequency * TWO_PI + descriptor.phase
        y = np.sin(angle)
        if descriptor.kind == WaveKind.SQUARE:
            y = square(y)
        return y * descriptor.amplitude

    def render(self, descriptor, time=0.0):
        s = self.settings
        x = self._x
        offset = self.noise_offset

        y = self.sample(descriptor)

        # Slow wobble: spatial plus temporal drift
        wobble = perlin2d(x * s.noise_scale + time * s.noise_speed + offset,
                          offset) * s.noise_strength

        # Fast interference, sampled away from the wobble layer
        hf_offset = offset + INTERFERENCE_OFFSET
        interference = perlin2d(x * s.interference_scale - time * s.interference_speed + hf_offset,
                                hf_offset) * self.interference_strength

        points = np.column_stack((x, y + wobble + interference))
        if self.sink is not None:
            self.sink.set_points(points)
        return points

    def set_fade(self, alpha):
        alpha = max(0.0, min(1.0, alpha))
        # Baseline is whatever the width was on the first call
        if self.fade_baseline is None:
            self.fade_baseline = self.style.width
        self.style = replace(self.style, width=self.fade_baseline * alpha, alpha=alpha)
        if self.sink is not None:
            self.sink.set_style(self.style)
