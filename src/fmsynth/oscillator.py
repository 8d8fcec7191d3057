"""FM carrier driven by an additive modulator bank and two envelopes."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from .envelope import Envelope
from .errors import InvalidConfigError
from .generator import GeneratorState
from .state import RAW_DTYPE, TWO_PI

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FmParams:
    """Sample-level FM parameters.

    ``phase_increment`` is the carrier's base phase advance in radians per
    sample and must lie strictly inside ``(0, pi)``. ``harmonics`` are integer
    multipliers of that increment for the modulator partials, each scaled by
    the matching entry of ``weights``. ``mod_depth`` of 0 disables FM.
    """

    harmonics: tuple[int, ...]
    weights: tuple[float, ...]
    phase_increment: float
    mod_depth: float = 1.0

    def __post_init__(self) -> None:
        if len(self.harmonics) != len(self.weights):
            raise InvalidConfigError(
                f"harmonics ({len(self.harmonics)}) and weights ({len(self.weights)}) must have the same length"
            )
        if any(int(h) < 1 for h in self.harmonics):
            raise InvalidConfigError("harmonics must be positive integers")
        if not 0.0 < self.phase_increment < math.pi:
            raise InvalidConfigError(
                f"phase_increment must be inside (0, pi), got {self.phase_increment!r}"
            )

    @classmethod
    def create(
        cls,
        harmonics: Sequence[int],
        weights: Sequence[float],
        phase_increment: float,
        mod_depth: float = 1.0,
    ) -> "FmParams":
        return cls(
            harmonics=tuple(int(h) for h in harmonics),
            weights=tuple(float(w) for w in weights),
            phase_increment=float(phase_increment),
            mod_depth=max(float(mod_depth), 0.0),
        )

    def with_phase_increment(self, phase_increment: float) -> "FmParams":
        return replace(self, phase_increment=float(phase_increment))


class FmOscillator:
    """Phase-modulated sine voice.

    Per sample ``n`` (absolute, counted from the first rendered sample)::

        m[n]     = sum_i w[i] * sin(h[i] * g * n)
        f[n]     = g * (1 + m[n] * depth * mod_env[n])
        theta[n] = (theta[n-1] + 2*pi * f[n]) mod 2*pi
        y[n]     = sin(theta[n]) * amp_env[n]

    Both envelopes render once per frame; their per-sample values feed the
    equations above so a phase change inside the frame is honoured.
    """

    __slots__ = (
        "params",
        "mod_env",
        "amp_env",
        "_phase",
        "_sample_count",
        "_harmonics",
        "_weights",
        "_mod_buf",
        "_amp_buf",
    )

    def __init__(self, params: FmParams, mod_env: Envelope, amp_env: Envelope) -> None:
        self.params = params
        self.mod_env = mod_env
        self.amp_env = amp_env
        self._phase = 0.0
        self._sample_count = 0
        self._harmonics = np.asarray(params.harmonics, dtype=RAW_DTYPE)
        self._weights = np.asarray(params.weights, dtype=RAW_DTYPE)
        self._mod_buf = np.empty(0, dtype=RAW_DTYPE)
        self._amp_buf = np.empty(0, dtype=RAW_DTYPE)

        mod_total = mod_env.total_samples
        amp_total = amp_env.total_samples
        if mod_total != amp_total:
            if mod_total < amp_total:
                effect = f"FM modulation stops {amp_total - mod_total} samples before the audio ends"
            else:
                effect = f"audio is silent for the last {mod_total - amp_total} samples"
            _LOGGER.warning(
                "modulation envelope (%d samples) and amplitude envelope (%d samples) differ: %s",
                mod_total,
                amp_total,
                effect,
            )

    @property
    def phase(self) -> float:
        return self._phase

    @property
    def sample_count(self) -> int:
        return self._sample_count

    def note_off(self) -> None:
        self.mod_env.note_off()
        self.amp_env.note_off()

    def is_complete(self) -> bool:
        return self.mod_env.is_complete() and self.amp_env.is_complete()

    def reset(self) -> None:
        self.mod_env.reset()
        self.amp_env.reset()
        self._phase = 0.0
        self._sample_count = 0

    def _ensure_scratch(self, frames: int) -> None:
        if self._mod_buf.shape[0] != frames:
            self._mod_buf = np.empty(frames, dtype=RAW_DTYPE)
            self._amp_buf = np.empty(frames, dtype=RAW_DTYPE)

    def modulation(self, sample_index: np.ndarray) -> np.ndarray:
        """Return the modulator bank evaluated at absolute ``sample_index``."""

        if self._harmonics.size == 0:
            return np.zeros(sample_index.shape, dtype=RAW_DTYPE)
        angles = np.multiply.outer(sample_index, self._harmonics * self.params.phase_increment)
        return np.sin(angles) @ self._weights

    def process(self, buffer: np.ndarray) -> GeneratorState:
        frames = buffer.shape[0]
        self._ensure_scratch(frames)
        mod_state = self.mod_env.process(self._mod_buf)
        amp_state = self.amp_env.process(self._amp_buf)

        n = np.arange(self._sample_count, self._sample_count + frames, dtype=RAW_DTYPE)
        g = self.params.phase_increment
        inst = g * (1.0 + self.modulation(n) * self.params.mod_depth * self._mod_buf)

        theta = np.cumsum(TWO_PI * inst)
        theta += self._phase
        np.mod(theta, TWO_PI, out=theta)
        # mod() can round tiny negatives up to exactly 2*pi
        theta[theta >= TWO_PI] = 0.0

        np.sin(theta, out=buffer)
        buffer *= self._amp_buf

        if frames:
            self._phase = float(theta[-1])
        self._sample_count += frames

        if mod_state is GeneratorState.COMPLETE and amp_state is GeneratorState.COMPLETE:
            return GeneratorState.COMPLETE
        return GeneratorState.RUNNING


__all__ = ["FmOscillator", "FmParams"]
