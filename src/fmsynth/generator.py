"""The capability shared by every block-based signal source."""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

import numpy as np


class GeneratorState(Enum):
    """Result of rendering one frame."""

    RUNNING = "running"
    COMPLETE = "complete"


@runtime_checkable
class SignalGenerator(Protocol):
    """Anything that renders frames into a caller-owned buffer.

    ``process`` fills the whole buffer (its length is the frame size) and
    reports whether the source is still producing. A complete generator keeps
    filling buffers with its final value until ``reset`` is called.
    """

    def process(self, buffer: np.ndarray) -> GeneratorState:
        ...

    def is_complete(self) -> bool:
        ...

    def reset(self) -> None:
        ...


__all__ = ["GeneratorState", "SignalGenerator"]
