"""Serialise rendered audio to disk."""

from __future__ import annotations

import json
import wave
from pathlib import Path
from typing import Sequence

import numpy as np

from .config import PipelineConfig
from .errors import AudioWriteError
from .scheduler import render_timeline
from .state import RAW_DTYPE
from .timeline import TimedEvents


def to_pcm16(samples) -> np.ndarray:
    """Clip to ``[-1, 1]`` and quantise to signed 16-bit."""

    data = np.clip(np.asarray(samples, dtype=RAW_DTYPE).reshape(-1), -1.0, 1.0)
    return np.clip(np.rint(data * 32767.0), -32768, 32767).astype(np.int16)


def write_audio(path: str | Path, samples, sample_rate: int) -> Path:
    """Write mono ``samples`` to ``path``.

    Paths ending in ``.wav`` are written as 16-bit WAV; other suffixes receive
    raw float32 frames (little-endian). A ``<path>.json`` sidecar records the
    frame count, channel count, rate and sample format.
    """

    target = Path(path)
    data = np.asarray(samples, dtype=RAW_DTYPE).reshape(-1)
    is_wav = target.suffix.lower() == ".wav"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if is_wav:
            with wave.open(str(target), "wb") as wf:
                wf.setnchannels(1)
                wf.setsampwidth(2)
                wf.setframerate(int(sample_rate))
                wf.writeframes(to_pcm16(data).tobytes())
        else:
            data.astype("<f4").tofile(target)
        metadata = {
            "frames": int(data.shape[0]),
            "channels": 1,
            "sample_rate": int(sample_rate),
            "format": "wav" if is_wav else "raw",
            "dtype": "int16" if is_wav else "float32",
        }
        sidecar = target.with_suffix(target.suffix + ".json")
        sidecar.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    except OSError as exc:
        raise AudioWriteError(f"failed to write {target}: {exc}") from exc
    return target


def read_wav(path: str | Path) -> tuple[np.ndarray, int]:
    """Read a mono 16-bit WAV back as floats in ``[-1, 1]``."""

    with wave.open(str(path), "rb") as wf:
        sample_rate = wf.getframerate()
        raw = wf.readframes(wf.getnframes())
    pcm = np.frombuffer(raw, dtype=np.int16).astype(RAW_DTYPE)
    return pcm / 32767.0, sample_rate


def render_to_file(
    config: PipelineConfig,
    timeline: Sequence[TimedEvents],
    path: str | Path,
) -> np.ndarray:
    """Render ``timeline`` and write it to ``path``; returns the samples."""

    samples = render_timeline(config, timeline)
    write_audio(path, samples, config.sample_rate)
    return samples


__all__ = ["read_wav", "render_to_file", "to_pcm16", "write_audio"]
