"""Command line entry point for the renderer."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .audio_io import render_to_file
from .config import DEFAULT_CONFIG_PATH, PipelineConfig, load_configuration
from .diagnostics import configure_logging
from .errors import FmSynthError
from .timeline import load_timeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a note timeline with the FM voice engine")
    parser.add_argument("timeline", type=Path, help="Path to the note timeline text file")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("output.wav"),
        help=(
            "Destination for rendered audio. Paths ending in .wav are written"
            " as 16-bit WAV; other suffixes receive raw float32 frames"
            " (little-endian)."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Path to a JSON configuration file (default: {DEFAULT_CONFIG_PATH.name} when present)",
    )
    parser.add_argument("--sample-rate", type=int, help="Override the sample rate in Hz")
    parser.add_argument("--frame-size", type=int, help="Override the number of samples per frame")
    parser.add_argument("--timestep", type=int, help="Override the number of samples per timeline timestep")
    parser.add_argument("--base-frequency", type=float, help="Override the frequency of 1C in Hz")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log voice activity to stderr")
    parser.add_argument("--log-file", type=Path, help="Append a debug log to this file")
    return parser


def _resolve_config(path: Path | None) -> PipelineConfig:
    if path is not None:
        return load_configuration(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_configuration(DEFAULT_CONFIG_PATH)
    return PipelineConfig()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, log_path=args.log_file)

    try:
        config = _resolve_config(args.config).with_overrides(
            sample_rate=args.sample_rate,
            frame_size=args.frame_size,
            timestep_samples=args.timestep,
            base_frequency=args.base_frequency,
        )
        timeline = load_timeline(args.timeline)
        samples = render_to_file(config, timeline, args.output)
    except FmSynthError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    seconds = samples.shape[0] / float(config.sample_rate)
    print(
        f"Rendered {samples.shape[0]} samples ({seconds:.2f} s) from"
        f" {len(timeline)} timeline entries to {args.output}"
    )
    return 0


__all__ = ["main", "build_parser"]
