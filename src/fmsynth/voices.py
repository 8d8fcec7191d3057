"""Polyphonic voice allocation, mixing and reclamation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .config import VoiceConfig
from .envelope import Envelope, EnvelopeParams
from .generator import GeneratorState
from .oscillator import FmOscillator, FmParams
from .state import RAW_DTYPE, TWO_PI
from .timeline import KeyDirection, Note

_LOGGER = logging.getLogger(__name__)


def soft_clip(sig):
    """Pass ``|x| <= 1`` through untouched and bend the excess towards 1.5."""

    x = np.asarray(sig, dtype=RAW_DTYPE)
    mag = np.abs(x)
    bent = np.sign(x) * (1.0 + np.tanh(mag - 1.0) * 0.5)
    out = np.where(mag <= 1.0, x, bent)
    if np.ndim(sig) == 0:
        return float(out)
    return out


@dataclass(slots=True)
class Voice:
    """One sounding note."""

    note: Note
    oscillator: FmOscillator
    releasing: bool = False


class VoicePool:
    """Owns every live voice and mixes them into frames.

    At most one non-releasing voice exists per note; a key-down on a note that
    is already held is ignored. Released voices keep sounding until their
    oscillator reports completion and are then dropped after the frame that
    finished them.
    """

    def __init__(self, config: VoiceConfig, base_frequency: float, sample_rate: int) -> None:
        self.config = config
        self.base_frequency = float(base_frequency)
        self.sample_rate = int(sample_rate)
        self._envelope = config.envelope.to_params(self.sample_rate)
        self._mod_envelope = config.modulation_params(self.sample_rate)
        self._voices: list[Voice] = []
        self._scratch = np.empty(0, dtype=RAW_DTYPE)

    @property
    def voices(self) -> tuple[Voice, ...]:
        return tuple(self._voices)

    @property
    def voice_count(self) -> int:
        return len(self._voices)

    @property
    def envelope_params(self) -> EnvelopeParams:
        return self._envelope

    @property
    def modulation_envelope_params(self) -> EnvelopeParams:
        return self._mod_envelope

    @property
    def longest_voice_samples(self) -> int:
        """Upper bound on how long one voice can sound."""

        return max(self._envelope.total_samples, self._mod_envelope.total_samples)

    def has_active_voices(self) -> bool:
        return bool(self._voices)

    def note_frequency(self, note: Note) -> float:
        """``base * 2 ** ((octave - 1) + semitone / 12)``; octave 1, C is the base."""

        semitones = (note.octave - 1) * 12 + note.pitch_class.semitone
        return self.base_frequency * 2.0 ** (semitones / 12.0)

    def phase_increment(self, frequency: float) -> float:
        return TWO_PI * frequency / self.sample_rate

    def _held_voice(self, note: Note) -> Voice | None:
        for voice in self._voices:
            if voice.note == note and not voice.releasing:
                return voice
        return None

    def _create_oscillator(self, note: Note) -> FmOscillator | None:
        increment = self.phase_increment(self.note_frequency(note))
        if not 0.0 < increment < math.pi:
            _LOGGER.warning(
                "note %s (%.1f Hz) is above Nyquist at %d Hz; ignoring key-down",
                note,
                self.note_frequency(note),
                self.sample_rate,
            )
            return None
        fm = self.config.fm
        params = FmParams.create(fm.harmonics, fm.weights, increment, fm.mod_depth)
        return FmOscillator(params, Envelope(self._mod_envelope), Envelope(self._envelope))

    def handle_event(self, note: Note, direction: KeyDirection) -> None:
        if direction is KeyDirection.DOWN:
            if self._held_voice(note) is not None:
                return
            oscillator = self._create_oscillator(note)
            if oscillator is None:
                return
            self._voices.append(Voice(note=note, oscillator=oscillator))
            _LOGGER.debug("voice on %s (%d live)", note, len(self._voices))
            return

        voice = self._held_voice(note)
        if voice is None:
            return
        voice.oscillator.note_off()
        voice.releasing = True
        _LOGGER.debug("voice release %s", note)

    def all_notes_off(self) -> None:
        """Release every held voice."""

        for voice in self._voices:
            if not voice.releasing:
                voice.oscillator.note_off()
                voice.releasing = True

    def clear(self) -> None:
        """Drop all voices immediately."""

        self._voices.clear()

    def process_frame(self, buffer: np.ndarray) -> None:
        buffer.fill(0.0)
        if not self._voices:
            return

        frames = buffer.shape[0]
        if self._scratch.shape[0] != frames:
            self._scratch = np.empty(frames, dtype=RAW_DTYPE)
        scratch = self._scratch

        finished: set[int] = set()
        for index, voice in enumerate(self._voices):
            scratch.fill(0.0)
            state = voice.oscillator.process(scratch)
            buffer += scratch
            if state is GeneratorState.COMPLETE:
                finished.add(index)

        if finished:
            for index in sorted(finished):
                _LOGGER.debug("voice reclaimed %s", self._voices[index].note)
            self._voices = [v for i, v in enumerate(self._voices) if i not in finished]

        buffer[:] = soft_clip(buffer)


__all__ = ["Voice", "VoicePool", "soft_clip"]
