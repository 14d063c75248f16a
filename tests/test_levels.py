import math

import pytest

from levels import PLAYER_START, level_definition
from wave_data import WaveDescriptor, WaveKind


def test_level_one_is_a_plain_sine_without_selector() -> None:
    d = level_definition(1)
    assert d.template == WaveDescriptor(2.0, 1.0, WaveKind.SINE, 0.0)
    assert d.player_start == WaveDescriptor(1.0, 0.5, WaveKind.SINE, 0.0)
    assert d.show_kind_selector is False
    assert d.noise_multiplier == 1.0
    assert d.label == "Day 1"
    assert "90%" in d.instruction


def test_later_levels_show_selector() -> None:
    assert level_definition(2).template.kind == WaveKind.SQUARE
    assert level_definition(3).template.phase == pytest.approx(math.pi / 4)
    assert level_definition(4).template == WaveDescriptor(4.5, 1.5, WaveKind.SQUARE, math.pi / 6)
    assert all(level_definition(n).show_kind_selector for n in (2, 3, 4))


def test_noise_multiplier_grows_per_level() -> None:
    assert level_definition(2).noise_multiplier == pytest.approx(5.75)
    assert level_definition(4).noise_multiplier == pytest.approx(15.25)
    assert level_definition(2).interference_strength == pytest.approx(0.05 * 5.75)


def test_levels_past_four_reuse_last_template_but_keep_label() -> None:
    d = level_definition(7)
    assert d.template == level_definition(4).template
    assert d.label == "Day 7"
    assert d.noise_multiplier == pytest.approx(1.0 + 6 * 4.75)


@pytest.mark.parametrize("level", [0, -3])
def test_levels_below_one_use_first_template(level: int) -> None:
    d = level_definition(level)
    assert d.template == level_definition(1).template
    assert d.noise_multiplier == 1.0
    assert d.label == f"Day {level}"


def test_every_level_starts_player_at_same_place() -> None:
    assert {level_definition(n).player_start for n in range(1, 5)} == {PLAYER_START}
