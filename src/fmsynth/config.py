"""Configuration loading for the renderer."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping

from .envelope import EnvelopeParams
from .errors import InvalidConfigError
from .state import (
    DEFAULT_BASE_FREQUENCY,
    DEFAULT_CAP_MARGIN_FRAMES,
    DEFAULT_FRAME_SIZE,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_TIMESTEP_SAMPLES,
    DEFAULT_TRAILING_FRAMES,
    RAW_DTYPE,
    SUSTAIN_MAX_SECONDS,
)

_LOGGER = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = _REPO_ROOT / "configs" / "default.json"


@dataclass(slots=True)
class EnvelopeConfig:
    """Per-voice envelope timing, in samples."""

    attack_samples: int = 4410
    decay_samples: int = 8820
    sustain_level: float = 0.7
    release_samples: int = 13230
    sustain_max_samples: int | None = None  # None -> one hour at the pipeline rate

    def to_params(self, sample_rate: int) -> EnvelopeParams:
        sustain_max = self.sustain_max_samples
        if sustain_max is None:
            sustain_max = int(sample_rate) * SUSTAIN_MAX_SECONDS
        return EnvelopeParams.create(
            attack_samples=self.attack_samples,
            decay_samples=self.decay_samples,
            sustain_level=self.sustain_level,
            sustain_max_samples=sustain_max,
            release_samples=self.release_samples,
        )


@dataclass(slots=True)
class FmConfig:
    """Modulator bank shared by every voice."""

    harmonics: tuple[int, ...] = (2, 5, 9)
    weights: tuple[float, ...] = (1.0, 2.0, 1.0)
    mod_depth: float = 1.0


@dataclass(slots=True)
class VoiceConfig:
    """Per-voice settings. ``modulation_envelope`` defaults to ``envelope``."""

    envelope: EnvelopeConfig = field(default_factory=EnvelopeConfig)
    fm: FmConfig = field(default_factory=FmConfig)
    modulation_envelope: EnvelopeConfig | None = None

    def modulation_params(self, sample_rate: int) -> EnvelopeParams:
        source = self.modulation_envelope if self.modulation_envelope is not None else self.envelope
        return source.to_params(sample_rate)


@dataclass(slots=True)
class PipelineConfig:
    """Everything the scheduler needs besides the timeline itself."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    frame_size: int = DEFAULT_FRAME_SIZE
    timestep_samples: int = DEFAULT_TIMESTEP_SAMPLES
    base_frequency: float = DEFAULT_BASE_FREQUENCY
    trailing_frames: int = DEFAULT_TRAILING_FRAMES
    max_iterations: int | None = None
    cap_margin_frames: int = DEFAULT_CAP_MARGIN_FRAMES
    voice: VoiceConfig = field(default_factory=VoiceConfig)

    def __post_init__(self) -> None:
        _validate_pipeline(self)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""

        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        return replace(self, **values)


def _section(raw: Mapping[str, Any], key: str) -> MutableMapping[str, Any]:
    data = raw.get(key, {}) or {}
    if not isinstance(data, Mapping):
        raise InvalidConfigError(f"{key} must be a mapping")
    return dict(data)


def _normalise_envelope(data: Mapping[str, Any], defaults: EnvelopeConfig | None = None) -> EnvelopeConfig:
    if defaults is None:
        defaults = EnvelopeConfig()
    sustain_max = data.get("sustain_max_samples", defaults.sustain_max_samples)
    return EnvelopeConfig(
        attack_samples=max(int(data.get("attack_samples", defaults.attack_samples)), 1),
        decay_samples=max(int(data.get("decay_samples", defaults.decay_samples)), 1),
        sustain_level=min(max(float(data.get("sustain_level", defaults.sustain_level)), 0.0), 1.0),
        release_samples=max(int(data.get("release_samples", defaults.release_samples)), 1),
        sustain_max_samples=None if sustain_max is None else max(int(sustain_max), 1),
    )


def _normalise_fm(data: Mapping[str, Any]) -> FmConfig:
    defaults = FmConfig()
    harmonics = tuple(int(h) for h in data.get("harmonics", defaults.harmonics))
    weights = tuple(float(w) for w in data.get("weights", defaults.weights))
    if len(harmonics) != len(weights):
        raise InvalidConfigError(
            f"fm.harmonics ({len(harmonics)}) and fm.weights ({len(weights)}) must have the same length"
        )
    if any(h < 1 for h in harmonics):
        raise InvalidConfigError("fm.harmonics must be positive integers")
    mod_depth = float(data.get("mod_depth", defaults.mod_depth))
    if mod_depth < 0.0:
        _LOGGER.warning("fm.mod_depth %.3f is negative, clamping to 0", mod_depth)
        mod_depth = 0.0
    return FmConfig(harmonics=harmonics, weights=weights, mod_depth=mod_depth)


def _validate_pipeline(config: PipelineConfig) -> PipelineConfig:
    try:
        config.sample_rate = int(config.sample_rate)
        config.frame_size = int(config.frame_size)
        config.base_frequency = float(config.base_frequency)
        config.timestep_samples = max(int(config.timestep_samples), 1)
        config.trailing_frames = max(int(config.trailing_frames), 0)
        config.cap_margin_frames = max(int(config.cap_margin_frames), 0)
        if config.max_iterations is not None:
            config.max_iterations = max(int(config.max_iterations), 1)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError(f"pipeline: {exc}") from exc
    if config.sample_rate <= 0:
        raise InvalidConfigError("pipeline.sample_rate must be positive")
    if config.frame_size <= 0:
        raise InvalidConfigError("pipeline.frame_size must be positive")
    if config.base_frequency <= 0.0:
        raise InvalidConfigError("pipeline.base_frequency must be positive")
    return config


def _normalise_pipeline(data: Mapping[str, Any], voice: VoiceConfig) -> PipelineConfig:
    return PipelineConfig(
        sample_rate=data.get("sample_rate", DEFAULT_SAMPLE_RATE),
        frame_size=data.get("frame_size", DEFAULT_FRAME_SIZE),
        timestep_samples=data.get("timestep_samples", DEFAULT_TIMESTEP_SAMPLES),
        base_frequency=data.get("base_frequency", DEFAULT_BASE_FREQUENCY),
        trailing_frames=data.get("trailing_frames", DEFAULT_TRAILING_FRAMES),
        max_iterations=data.get("max_iterations"),
        cap_margin_frames=data.get("cap_margin_frames", DEFAULT_CAP_MARGIN_FRAMES),
        voice=voice,
    )


def _normalise_voice(raw: Mapping[str, Any]) -> VoiceConfig:
    envelope_data = _section(raw, "envelope")
    modulation_data = _section(envelope_data, "modulation")
    envelope = _normalise_envelope(envelope_data)
    modulation = None
    if modulation_data:
        # fields not given fall back to the amplitude envelope
        modulation = _normalise_envelope(modulation_data, envelope)
    return VoiceConfig(
        envelope=envelope,
        fm=_normalise_fm(_section(raw, "fm")),
        modulation_envelope=modulation,
    )


def configuration_from_mapping(raw: Mapping[str, Any]) -> PipelineConfig:
    """Build a :class:`PipelineConfig` from an already decoded mapping."""

    if not isinstance(raw, Mapping):
        raise InvalidConfigError("configuration root must be a mapping")
    try:
        return _normalise_pipeline(_section(raw, "pipeline"), _normalise_voice(raw))
    except (TypeError, ValueError) as exc:
        if isinstance(exc, InvalidConfigError):
            raise
        raise InvalidConfigError(str(exc)) from exc


def load_configuration(path: str | Path) -> PipelineConfig:
    """Load a :class:`PipelineConfig` from the JSON file at ``path``."""

    try:
        with open(path, "r", encoding="utf8") as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise InvalidConfigError(f"{path}: {exc}") from exc
    return configuration_from_mapping(raw)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EnvelopeConfig",
    "FmConfig",
    "PipelineConfig",
    "RAW_DTYPE",
    "VoiceConfig",
    "configuration_from_mapping",
    "load_configuration",
]
