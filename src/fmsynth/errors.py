"""Exceptions raised by the fmsynth package."""

from __future__ import annotations


class FmSynthError(Exception):
    """Base error for the fmsynth package."""


class InvalidConfigError(FmSynthError, ValueError):
    """Raised when a configuration cannot be parsed or is structurally invalid."""


class TimelineParseError(FmSynthError, ValueError):
    """Raised when a note timeline line does not follow the grammar.

    ``kind`` names the failing part of the line (``line``, ``timestep``,
    ``event``, ``note``, ``pitch_class``, ``octave`` or ``direction``).
    """

    def __init__(self, kind: str, text: str, line_number: int | None = None) -> None:
        self.kind = kind
        self.text = text
        self.line_number = line_number
        label = kind.replace("_", " ")
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}invalid {label}: {text}")

    def at_line(self, line_number: int) -> "TimelineParseError":
        return TimelineParseError(self.kind, self.text, line_number)


class AudioWriteError(FmSynthError, OSError):
    """Raised when rendered audio cannot be written to disk."""
