"""Offline polyphonic FM synthesiser engine."""

from __future__ import annotations

from .config import EnvelopeConfig, FmConfig, PipelineConfig, VoiceConfig, load_configuration
from .envelope import Envelope, EnvelopeParams, EnvelopePhase
from .errors import AudioWriteError, FmSynthError, InvalidConfigError, TimelineParseError
from .generator import GeneratorState, SignalGenerator
from .oscillator import FmOscillator, FmParams
from .ramp import RampGenerator
from .scheduler import Scheduler, SchedulerCursor, render_timeline
from .timeline import KeyDirection, Note, NoteEvent, PitchClass, TimedEvents, parse_timeline
from .voices import Voice, VoicePool, soft_clip

__all__ = [
    "AudioWriteError",
    "Envelope",
    "EnvelopeConfig",
    "EnvelopeParams",
    "EnvelopePhase",
    "FmConfig",
    "FmOscillator",
    "FmParams",
    "FmSynthError",
    "GeneratorState",
    "InvalidConfigError",
    "KeyDirection",
    "Note",
    "NoteEvent",
    "PipelineConfig",
    "PitchClass",
    "RampGenerator",
    "Scheduler",
    "SchedulerCursor",
    "SignalGenerator",
    "TimedEvents",
    "TimelineParseError",
    "Voice",
    "VoiceConfig",
    "VoicePool",
    "load_configuration",
    "parse_timeline",
    "render_timeline",
    "soft_clip",
]
