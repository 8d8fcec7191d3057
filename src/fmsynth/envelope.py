"""Blockwise ADSR envelope generation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from .generator import GeneratorState
from .state import RAW_DTYPE


def _clamp_unit(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


@dataclass(frozen=True, slots=True)
class EnvelopeParams:
    """Static parameters that describe an ADSR envelope.

    Durations are sample counts. Every duration is floored to one sample and
    both levels are clamped into ``[0, 1]`` on construction.
    """

    attack_samples: int
    decay_samples: int
    sustain_level: float
    sustain_max_samples: int
    release_samples: int
    initial_amplitude: float = 0.0

    def __post_init__(self) -> None:
        for name in ("attack_samples", "decay_samples", "sustain_max_samples", "release_samples"):
            object.__setattr__(self, name, max(int(getattr(self, name)), 1))
        object.__setattr__(self, "sustain_level", _clamp_unit(self.sustain_level))
        object.__setattr__(self, "initial_amplitude", _clamp_unit(self.initial_amplitude))

    @classmethod
    def create(
        cls,
        *,
        attack_samples: int,
        decay_samples: int,
        sustain_level: float,
        sustain_max_samples: int,
        release_samples: int,
        initial_amplitude: float = 0.0,
    ) -> "EnvelopeParams":
        return cls(
            attack_samples=attack_samples,
            decay_samples=decay_samples,
            sustain_level=sustain_level,
            sustain_max_samples=sustain_max_samples,
            release_samples=release_samples,
            initial_amplitude=initial_amplitude,
        )

    @property
    def total_samples(self) -> int:
        """Longest possible run from the first attack sample to completion."""

        return (
            self.attack_samples
            + self.decay_samples
            + self.sustain_max_samples
            + self.release_samples
        )


class EnvelopePhase(Enum):
    ATTACK = "attack"
    DECAY = "decay"
    SUSTAIN = "sustain"
    RELEASE = "release"
    COMPLETE = "complete"


def _ramp_segment(
    out: np.ndarray,
    start_amp: float,
    end_amp: float,
    length: int,
    position: int,
) -> None:
    """Write positions ``position .. position + len(out)`` of a linear ramp."""

    if length == 1:
        out.fill(end_amp)
        return
    idxs = np.arange(position, position + out.shape[0], dtype=RAW_DTYPE)
    t = idxs / float(length - 1)
    np.multiply(t, end_amp - start_amp, out=out)
    out += start_amp


class Envelope:
    """ADSR state machine rendering one frame per :meth:`process` call.

    External release requests are latched by :meth:`note_off` and applied at
    the start of the next frame, so a frame never sees an external phase
    change. Internal transitions (end of attack, decay, sustain timeout, end
    of release) happen at the exact sample they are due and the rest of the
    frame renders in the following phase.
    """

    __slots__ = (
        "params",
        "_phase",
        "_position",
        "_sustain_position",
        "_current",
        "_release_start",
        "_pending_release",
    )

    def __init__(self, params: EnvelopeParams) -> None:
        self.params = params
        self._phase = EnvelopePhase.ATTACK
        self._position = 0
        self._sustain_position = 0
        self._current = params.initial_amplitude
        self._release_start = 0.0
        self._pending_release = False

    @property
    def phase(self) -> EnvelopePhase:
        return self._phase

    @property
    def current_amplitude(self) -> float:
        """Amplitude of the most recently emitted sample."""

        return self._current

    @property
    def release_start_amplitude(self) -> float:
        return self._release_start

    @property
    def total_samples(self) -> int:
        return self.params.total_samples

    def note_off(self) -> None:
        self._pending_release = True

    def is_complete(self) -> bool:
        return self._phase is EnvelopePhase.COMPLETE

    def reset(self) -> None:
        self._phase = EnvelopePhase.ATTACK
        self._position = 0
        self._sustain_position = 0
        self._current = self.params.initial_amplitude
        self._release_start = 0.0
        self._pending_release = False

    def _begin_release(self) -> None:
        self._phase = EnvelopePhase.RELEASE
        self._release_start = self._current
        self._position = 0

    def _apply_pending(self) -> None:
        if self._pending_release:
            self._pending_release = False
            if self._phase in (
                EnvelopePhase.ATTACK,
                EnvelopePhase.DECAY,
                EnvelopePhase.SUSTAIN,
            ):
                self._begin_release()
        if (
            self._phase is EnvelopePhase.SUSTAIN
            and self._sustain_position >= self.params.sustain_max_samples
        ):
            self._begin_release()

    def _render_ramp(
        self,
        out: np.ndarray,
        start_amp: float,
        end_amp: float,
        length: int,
    ) -> int:
        seg_len = min(out.shape[0], length - self._position)
        segment = out[:seg_len]
        _ramp_segment(segment, start_amp, end_amp, length, self._position)
        self._current = float(segment[-1])
        self._position += seg_len
        return seg_len

    def process(self, buffer: np.ndarray) -> GeneratorState:
        self._apply_pending()
        params = self.params
        F = buffer.shape[0]
        t = 0

        while t < F:
            out = buffer[t:]

            if self._phase is EnvelopePhase.ATTACK:
                t += self._render_ramp(
                    out, params.initial_amplitude, 1.0, params.attack_samples
                )
                if self._position >= params.attack_samples:
                    self._phase = EnvelopePhase.DECAY
                    self._position = 0
                continue

            if self._phase is EnvelopePhase.DECAY:
                # Attack always lands on 1.0, so the decay picks up from there.
                t += self._render_ramp(
                    out, 1.0, params.sustain_level, params.decay_samples
                )
                if self._position >= params.decay_samples:
                    self._phase = EnvelopePhase.SUSTAIN
                    self._position = 0
                    self._sustain_position = 0
                continue

            if self._phase is EnvelopePhase.SUSTAIN:
                remaining = params.sustain_max_samples - self._sustain_position
                seg_len = min(F - t, max(remaining, 0))
                if seg_len > 0:
                    out[:seg_len] = params.sustain_level
                    self._current = params.sustain_level
                    self._sustain_position += seg_len
                    t += seg_len
                if self._sustain_position >= params.sustain_max_samples:
                    self._begin_release()
                continue

            if self._phase is EnvelopePhase.RELEASE:
                t += self._render_ramp(
                    out, self._release_start, 0.0, params.release_samples
                )
                if self._position >= params.release_samples:
                    self._phase = EnvelopePhase.COMPLETE
                    self._current = 0.0
                    buffer[t:] = 0.0
                    return GeneratorState.COMPLETE
                continue

            # Complete
            out.fill(0.0)
            self._current = 0.0
            return GeneratorState.COMPLETE

        return GeneratorState.RUNNING


__all__ = ["Envelope", "EnvelopeParams", "EnvelopePhase"]
