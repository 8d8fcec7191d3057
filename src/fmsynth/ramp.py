"""Linear 0 -> 1 ramp used for smoke tests and control curves."""

from __future__ import annotations

import numpy as np

from .generator import GeneratorState
from .state import RAW_DTYPE


class RampGenerator:
    """Ramp from 0.0 to 1.0 over ``duration`` samples, then hold 1.0."""

    __slots__ = ("duration", "position", "_completed")

    def __init__(self, duration: int) -> None:
        self.duration = max(int(duration), 1)
        self.position = 0
        self._completed = False

    @classmethod
    def from_seconds(cls, seconds: float, sample_rate: int) -> "RampGenerator":
        return cls(int(seconds * sample_rate))

    def process(self, buffer: np.ndarray) -> GeneratorState:
        if self._completed:
            buffer.fill(1.0)
            return GeneratorState.COMPLETE

        frames = buffer.shape[0]
        idx = np.arange(self.position, self.position + frames, dtype=RAW_DTYPE)
        np.minimum(idx / float(max(self.duration - 1, 1)), 1.0, out=buffer)
        self.position += frames
        if self.position >= self.duration:
            self._completed = True
            return GeneratorState.COMPLETE
        return GeneratorState.RUNNING

    def is_complete(self) -> bool:
        return self._completed

    def reset(self) -> None:
        self.position = 0
        self._completed = False


__all__ = ["RampGenerator"]
