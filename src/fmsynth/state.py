"""Shared numeric settings and rendering defaults."""

from __future__ import annotations

import math

# =========================
# Settings / fidelity
# =========================
RAW_DTYPE = "float64"
TWO_PI = 2.0 * math.pi

# =========================
# Rendering defaults
# =========================
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_FRAME_SIZE = 64
DEFAULT_TIMESTEP_SAMPLES = 1000
DEFAULT_BASE_FREQUENCY = 110.0  # 1C
DEFAULT_TRAILING_FRAMES = 10
DEFAULT_CAP_MARGIN_FRAMES = 1000

# One hour of sustain: voices effectively wait for their key-up.
SUSTAIN_MAX_SECONDS = 60 * 60

__all__ = [
    "DEFAULT_BASE_FREQUENCY",
    "DEFAULT_CAP_MARGIN_FRAMES",
    "DEFAULT_FRAME_SIZE",
    "DEFAULT_SAMPLE_RATE",
    "DEFAULT_TIMESTEP_SAMPLES",
    "DEFAULT_TRAILING_FRAMES",
    "RAW_DTYPE",
    "SUSTAIN_MAX_SECONDS",
    "TWO_PI",
]
