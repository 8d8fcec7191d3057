from __future__ import annotations

import numpy as np
import pytest

from fmsynth.envelope import Envelope, EnvelopeParams, EnvelopePhase
from fmsynth.generator import GeneratorState
from fmsynth.state import RAW_DTYPE


def _make(initial, attack, decay, sustain, sustain_max, release) -> Envelope:
    return Envelope(
        EnvelopeParams.create(
            attack_samples=attack,
            decay_samples=decay,
            sustain_level=sustain,
            sustain_max_samples=sustain_max,
            release_samples=release,
            initial_amplitude=initial,
        )
    )


def _render(env: Envelope, total: int, frame: int) -> np.ndarray:
    out = np.empty(0, dtype=RAW_DTYPE)
    buf = np.zeros(frame, dtype=RAW_DTYPE)
    while out.shape[0] < total:
        env.process(buf)
        out = np.concatenate([out, buf])
    return out[:total]


def test_full_envelope_in_100_sample_chunks():
    env = _make(0.0, 100, 100, 0.5, 2000, 100)
    buf = np.zeros(100, dtype=RAW_DTYPE)

    assert env.process(buf) is GeneratorState.RUNNING
    assert env.phase is EnvelopePhase.DECAY
    assert buf[0] == 0.0
    assert buf[99] == 1.0

    assert env.process(buf) is GeneratorState.RUNNING
    assert env.phase is EnvelopePhase.SUSTAIN
    assert buf[0] == pytest.approx(1.0)
    assert buf[99] == pytest.approx(0.5)

    assert env.process(buf) is GeneratorState.RUNNING
    assert np.all(buf == 0.5)
    assert env.current_amplitude == 0.5

    env.note_off()
    small = np.zeros(50, dtype=RAW_DTYPE)
    assert env.process(small) is GeneratorState.RUNNING
    assert env.phase is EnvelopePhase.RELEASE
    assert small[0] == pytest.approx(0.5)

    assert env.process(small) is GeneratorState.COMPLETE
    assert small[-1] == 0.0
    assert env.phase is EnvelopePhase.COMPLETE

    small.fill(9.0)
    assert env.process(small) is GeneratorState.COMPLETE
    assert np.all(small == 0.0)
    assert env.current_amplitude == 0.0


@pytest.mark.parametrize("frame", [1, 7, 50, 64, 333])
def test_amplitude_stays_in_unit_range(frame):
    env = _make(0.2, 37, 51, 0.35, 90, 44)
    buf = np.zeros(frame, dtype=RAW_DTYPE)
    for _ in range(10_000):
        state = env.process(buf)
        assert np.all(buf >= 0.0)
        assert np.all(buf <= 1.0)
        assert 0.0 <= env.current_amplitude <= 1.0
        if state is GeneratorState.COMPLETE:
            break
    else:
        raise AssertionError("envelope never completed")


def test_internal_transitions_are_continuous():
    env = _make(0.0, 100, 100, 0.5, 2000, 100)
    buf = np.zeros(100, dtype=RAW_DTYPE)

    env.process(buf)
    last_attack = buf[-1]
    env.process(buf)
    assert buf[0] == pytest.approx(last_attack)
    last_decay = buf[-1]
    env.process(buf)
    assert buf[0] == pytest.approx(last_decay)


def test_phase_change_inside_a_frame_keeps_rendering():
    env = _make(0.0, 100, 100, 0.5, 2000, 100)
    buf = np.zeros(150, dtype=RAW_DTYPE)

    env.process(buf)

    assert buf[99] == 1.0
    assert buf[100] == 1.0
    assert buf[149] == pytest.approx(1.0 - 0.5 * 49 / 99)
    assert env.phase is EnvelopePhase.DECAY


@pytest.mark.parametrize("consumed", [1, 40, 99])
def test_release_mid_attack_starts_from_current_amplitude(consumed):
    env = _make(0.0, 100, 100, 0.5, 2000, 100)
    head = np.zeros(consumed, dtype=RAW_DTYPE)
    env.process(head)
    at_trigger = head[-1]

    env.note_off()
    assert env.phase is EnvelopePhase.ATTACK  # latched until the next frame

    buf = np.zeros(10, dtype=RAW_DTYPE)
    env.process(buf)
    assert env.phase is EnvelopePhase.RELEASE
    assert env.release_start_amplitude == at_trigger
    assert buf[0] == at_trigger


def test_release_mid_decay_starts_from_current_amplitude():
    env = _make(0.0, 10, 100, 0.2, 2000, 100)
    head = np.zeros(47, dtype=RAW_DTYPE)
    env.process(head)
    assert env.phase is EnvelopePhase.DECAY
    at_trigger = head[-1]
    assert 0.2 < at_trigger < 1.0

    env.note_off()
    buf = np.zeros(10, dtype=RAW_DTYPE)
    env.process(buf)
    assert buf[0] == at_trigger
    assert buf[1] < at_trigger


@pytest.mark.parametrize("frame", [1, 7, 64, 1000])
def test_sustain_timeout_is_independent_of_frame_size(frame):
    reference = _render(_make(0.0, 10, 10, 0.5, 250, 20), 300, 300)
    rendered = _render(_make(0.0, 10, 10, 0.5, 250, 20), 300, frame)

    np.testing.assert_array_equal(rendered, reference)
    assert reference[269] == 0.5
    assert reference[270] == 0.5
    assert reference[271] < 0.5
    assert reference[289] == 0.0
    assert np.all(reference[289:] == 0.0)


def test_zero_durations_are_coerced_to_one_sample():
    env = _make(0.0, 0, 0, 0.5, 0, 0)
    assert env.params.attack_samples == 1
    assert env.params.release_samples == 1

    buf = np.zeros(5, dtype=RAW_DTYPE)
    state = env.process(buf)

    np.testing.assert_array_equal(buf, [1.0, 0.5, 0.5, 0.0, 0.0])
    assert state is GeneratorState.COMPLETE


def test_levels_are_clamped():
    params = EnvelopeParams.create(
        attack_samples=10,
        decay_samples=10,
        sustain_level=1.5,
        sustain_max_samples=10,
        release_samples=10,
        initial_amplitude=-0.3,
    )
    assert params.sustain_level == 1.0
    assert params.initial_amplitude == 0.0
    assert params.total_samples == 40


def test_direct_construction_is_clamped():
    params = EnvelopeParams(
        attack_samples=0,
        decay_samples=0,
        sustain_level=2.0,
        sustain_max_samples=5,
        release_samples=3,
        initial_amplitude=-1.0,
    )
    assert params.attack_samples == 1
    assert params.decay_samples == 1
    assert params.sustain_level == 1.0
    assert params.initial_amplitude == 0.0

    env = Envelope(params)
    buf = np.zeros(8, dtype=RAW_DTYPE)
    assert env.process(buf) is GeneratorState.RUNNING
    np.testing.assert_array_equal(buf, np.ones(8))


def test_note_off_after_completion_is_ignored():
    env = _make(0.0, 2, 2, 0.5, 2, 2)
    buf = np.zeros(16, dtype=RAW_DTYPE)
    assert env.process(buf) is GeneratorState.COMPLETE

    env.note_off()
    assert env.process(buf) is GeneratorState.COMPLETE
    assert env.phase is EnvelopePhase.COMPLETE


def test_reset_restarts_attack():
    env = _make(0.25, 4, 4, 0.5, 4, 4)
    buf = np.zeros(32, dtype=RAW_DTYPE)
    env.process(buf)
    assert env.is_complete()

    env.reset()
    assert env.phase is EnvelopePhase.ATTACK
    assert env.current_amplitude == 0.25
    assert not env.is_complete()
    env.process(buf[:1])
    assert buf[0] == 0.25
