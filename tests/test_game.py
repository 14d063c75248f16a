import pytest

from audio_engine import OscillatorBank
from game import DisplaySink, GameState, LevelStateMachine
from state import AudioSettings, GameSettings, TraceSettings
from wave_data import WaveKind
from wave_renderer import WaveRenderer

DT = 0.25


class RecordingDisplay:
    def __init__(self) -> None:
        self.calls = []

    def _record(self, name, *args) -> None:
        self.calls.append((name, args))

    def set_level_label(self, text) -> None:
        self._record("set_level_label", text)

    def set_instruction(self, text, visible) -> None:
        self._record("set_instruction", text, visible)

    def set_match(self, text, band) -> None:
        self._record("set_match", text, band)

    def set_kind_selector_visible(self, visible) -> None:
        self._record("set_kind_selector_visible", visible)

    def set_control_ranges(self, freq_min, freq_max, amp_min, amp_max) -> None:
        self._record("set_control_ranges", freq_min, freq_max, amp_min, amp_max)

    def set_controls(self, frequency, amplitude, kind, enabled) -> None:
        self._record("set_controls", frequency, amplitude, kind, enabled)

    def set_win_message(self, text, visible) -> None:
        self._record("set_win_message", text, visible)

    def last(self, name):
        return [args for call, args in self.calls if call == name][-1]


class Sinks:
    def __init__(self) -> None:
        self.won = 0
        self.returned = 0

    def level_won(self) -> None:
        self.won += 1

    def return_to_prior(self) -> None:
        self.returned += 1


@pytest.fixture
def sinks() -> Sinks:
    return Sinks()


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def wired(sinks: Sinks, display: RecordingDisplay) -> LevelStateMachine:
    trace = TraceSettings(noise_offset=5.0)
    machine = LevelStateMachine(
        level_source=lambda: 1,
        on_level_won=sinks.level_won,
        on_return=sinks.return_to_prior,
        oscillator=OscillatorBank(AudioSettings(), seed=0),
        template_renderer=WaveRenderer(trace),
        player_renderer=WaveRenderer(trace),
        display=display,
        settings=GameSettings(),
    )
    machine.start()
    return machine


def run(machine: LevelStateMachine, seconds: float) -> None:
    for _ in range(int(round(seconds / DT))):
        machine.update(DT)


def tune_to_template(machine: LevelStateMachine) -> None:
    machine.on_wave_kind_changed(machine.template.kind)
    machine.on_frequency_changed(machine.template.frequency)
    machine.on_amplitude_changed(machine.template.amplitude)


def test_setup_starts_active_with_zero_score(wired: LevelStateMachine, display: RecordingDisplay) -> None:
    assert wired.state == GameState.ACTIVE
    assert wired.score == 0.0
    assert wired.oscillator.is_playing
    assert display.last("set_level_label") == ("Day 1",)
    assert display.last("set_kind_selector_visible") == (False,)
    assert display.last("set_match") == ("Match: 0.0%", "far")
    assert display.last("set_control_ranges") == (0.5, 10.0, 0.1, 2.0)


def test_end_to_end_level_one(wired: LevelStateMachine, sinks: Sinks) -> None:
    wired.on_frequency_changed(2.0)
    assert wired.score == pytest.approx(0.5)
    assert wired.oscillator.target_frequency == pytest.approx(450.0)

    wired.on_amplitude_changed(1.0)
    assert wired.score == 1.0
    assert wired.state == GameState.WON
    assert wired.oscillator.is_fading

    run(wired, 3.75)
    assert sinks.won == 0
    run(wired, 0.25)
    assert wired.state == GameState.EXITED
    assert sinks.won == 1
    assert sinks.returned == 1

    run(wired, 2.0)
    assert sinks.won == 1


def test_win_is_entered_once(wired: LevelStateMachine, sinks: Sinks, display: RecordingDisplay) -> None:
    tune_to_template(wired)
    typed = len([c for c in display.calls if c[0] == "set_win_message"])

    # More matching input while the win settles changes nothing
    wired._check_match()
    wired._check_match()
    wired.on_frequency_changed(3.0)
    assert wired.player.frequency == 2.0
    assert wired.state == GameState.WON
    assert len([c for c in display.calls if c[0] == "set_win_message"]) == typed

    run(wired, 6.0)
    assert sinks.won == 1


def test_win_disables_controls_and_shows_message(wired: LevelStateMachine, display: RecordingDisplay) -> None:
    tune_to_template(wired)
    assert display.last("set_controls")[3] is False
    assert display.last("set_instruction")[1] is False

    run(wired, 3.0)
    assert display.last("set_win_message")[0] == "SIGNAL LOCKED // UPLINK ESTABLISHED"
    assert wired.console.is_blinking


def test_signal_fade_is_monotonic_and_ends_at_zero(wired: LevelStateMachine) -> None:
    tune_to_template(wired)
    values = []
    for _ in range(4):
        wired.update(DT)
        values.append(wired.fade_value)

    assert values == sorted(values, reverse=True)
    assert values[-1] == 0.0
    assert wired.template_renderer.style.width == 0.0
    assert wired.player_renderer.style.alpha == 0.0

    run(wired, 1.0)
    assert wired.fade_value == 0.0


def test_oscillator_goes_silent_after_win(wired: LevelStateMachine) -> None:
    tune_to_template(wired)
    run(wired, 1.0)
    assert not wired.oscillator.is_playing


def test_exit_during_win_delay_cancels_completion(wired: LevelStateMachine, sinks: Sinks) -> None:
    tune_to_template(wired)
    run(wired, 2.0)
    wired.request_exit()
    assert wired.state == GameState.ABORTED
    assert sinks.returned == 1

    run(wired, 10.0)
    assert sinks.won == 0
    assert sinks.returned == 1


def test_exit_while_active_stops_audio(wired: LevelStateMachine, sinks: Sinks) -> None:
    wired.on_exit_requested()
    assert wired.oscillator.is_fading
    run(wired, 1.0)
    assert not wired.oscillator.is_playing
    assert (sinks.won, sinks.returned) == (0, 1)

    wired.request_exit()
    assert sinks.returned == 1


def test_edits_are_clamped_to_slider_bounds(wired: LevelStateMachine) -> None:
    wired.on_frequency_changed(50.0)
    wired.on_amplitude_changed(-1.0)
    assert wired.player.frequency == 10.0
    assert wired.player.amplitude == 0.1


def test_wrong_kind_scores_zero_until_switched(sinks: Sinks) -> None:
    machine = LevelStateMachine(lambda: 2, sinks.level_won, sinks.return_to_prior)
    machine.start()
    machine.on_frequency_changed(machine.template.frequency)
    machine.on_amplitude_changed(machine.template.amplitude)
    assert machine.score == 0.0
    machine.on_wave_kind_changed(WaveKind.SQUARE)
    assert machine.state == GameState.WON


def test_runs_without_any_collaborators() -> None:
    machine = LevelStateMachine(level_source=lambda: 9)
    machine.start()
    assert machine.level == 9
    assert machine.template == machine.definition.template
    assert machine.template.kind == WaveKind.SQUARE
    tune_to_template(machine)
    run(machine, 5.0)
    assert machine.state == GameState.EXITED


def test_level_noise_reaches_renderers() -> None:
    renderer = WaveRenderer(TraceSettings(noise_offset=1.0))
    machine = LevelStateMachine(lambda: 3, template_renderer=renderer)
    machine.start()
    assert renderer.interference_strength == pytest.approx(0.05 * (1.0 + 2 * 4.75))


def test_setup_again_restores_faded_traces(wired: LevelStateMachine, sinks: Sinks) -> None:
    tune_to_template(wired)
    run(wired, 2.0)
    wired.setup(2)
    assert wired.state == GameState.ACTIVE
    assert wired.fade_value == 1.0
    assert wired.template_renderer.style.width == pytest.approx(2.0)

    run(wired, 5.0)
    assert sinks.won == 0


def test_recording_display_satisfies_display_sink(display: RecordingDisplay) -> None:
    assert isinstance(display, DisplaySink)


def test_display_missing_methods_is_rejected() -> None:
    class LabelOnly:
        def set_level_label(self, text) -> None:
            pass

    with pytest.raises(TypeError, match="DisplaySink"):
        LevelStateMachine(lambda: 1, display=LabelOnly())
