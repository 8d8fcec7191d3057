"""Frame-based event scheduling and full render passes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import accumulate
from typing import Sequence

import numpy as np

from .config import PipelineConfig
from .state import RAW_DTYPE
from .timeline import TimedEvents
from .voices import VoicePool

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulerCursor:
    """Position of one render pass within the timeline."""

    sample_position: int = 0
    event_index: int = 0
    countdown: int = 0


class Scheduler:
    """Drive a :class:`VoicePool` from a timeline, one frame at a time.

    Entry ``i`` fires at ``sum(delta[0..i]) * timestep_samples``. Events are
    only dispatched at frame starts, so an entry due inside a frame sounds
    from the next frame boundary; the absolute offsets keep later entries
    from drifting when the timestep is not a multiple of the frame size.
    """

    def __init__(self, config: PipelineConfig, timeline: Sequence[TimedEvents]) -> None:
        self.config = config
        self.timeline = tuple(timeline)
        self.voices = VoicePool(config.voice, config.base_frequency, config.sample_rate)
        step = config.timestep_samples
        self.offsets = tuple(total * step for total in accumulate(entry.delta for entry in self.timeline))
        self.cursor = self.new_cursor()

    def new_cursor(self) -> SchedulerCursor:
        countdown = self.offsets[0] if self.offsets else 0
        return SchedulerCursor(countdown=countdown)

    def _has_pending(self, cursor: SchedulerCursor) -> bool:
        return cursor.event_index < len(self.timeline)

    def is_active(self) -> bool:
        return self._has_pending(self.cursor) or self.voices.has_active_voices()

    def _dispatch_due(self, cursor: SchedulerCursor) -> None:
        while self._has_pending(cursor) and cursor.countdown <= 0:
            for event in self.timeline[cursor.event_index].events:
                self.voices.handle_event(event.note, event.direction)
            cursor.event_index += 1
            if self._has_pending(cursor):
                cursor.countdown = max(self.offsets[cursor.event_index] - cursor.sample_position, 0)
            else:
                cursor.countdown = 0

    def _advance(self, cursor: SchedulerCursor, frames: int) -> None:
        cursor.sample_position += frames
        if self._has_pending(cursor):
            cursor.countdown = max(cursor.countdown - frames, 0)

    def process_frame(self, buffer: np.ndarray) -> None:
        """Dispatch due events, render one frame into ``buffer``, advance time."""

        self._dispatch_due(self.cursor)
        self.voices.process_frame(buffer)
        self._advance(self.cursor, buffer.shape[0])

    def iteration_cap(self) -> int:
        """Upper bound on frames rendered while the pass is active."""

        if self.config.max_iterations is not None:
            return self.config.max_iterations
        span = self.offsets[-1] if self.offsets else 0
        longest_voice = self.voices.longest_voice_samples
        return (span + longest_voice) // self.config.frame_size + 1 + self.config.cap_margin_frames

    def render(self) -> np.ndarray:
        """Render the whole timeline from the start and return the samples."""

        self.cursor = self.new_cursor()
        self.voices.clear()

        frame = np.zeros(self.config.frame_size, dtype=RAW_DTYPE)
        chunks: list[np.ndarray] = []
        cap = self.iteration_cap()
        iterations = 0
        while self.is_active() and iterations < cap:
            self.process_frame(frame)
            chunks.append(frame.copy())
            iterations += 1

        if self.is_active():
            _LOGGER.warning(
                "render stopped after %d frames with %d voices still live; output truncated",
                iterations,
                self.voices.voice_count,
            )

        for _ in range(self.config.trailing_frames):
            if not self.voices.has_active_voices():
                break
            self.process_frame(frame)
            chunks.append(frame.copy())

        if not chunks:
            return np.zeros(0, dtype=RAW_DTYPE)
        return np.concatenate(chunks)


def render_timeline(config: PipelineConfig, timeline: Sequence[TimedEvents]) -> np.ndarray:
    """Convenience wrapper: build a scheduler and render one pass."""

    return Scheduler(config, timeline).render()


__all__ = ["Scheduler", "SchedulerCursor", "render_timeline"]
