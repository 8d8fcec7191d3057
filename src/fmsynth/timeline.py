"""Note timeline types and the text format they are read from.

Format, one entry per line::

    +<timestep delta>| <event>, <event>, ...   # comment

An event is ``<octave><pitch><direction>``: a single octave digit, a pitch
class (``c c# d d# e f f# g g# a a# b``) and ``d`` for key-down or ``u`` for
key-up, e.g. ``4c#d`` or ``3au``. Lines starting with ``#`` are comments;
inline comments start at `` #`` so sharps inside events survive.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List

from .errors import TimelineParseError


class PitchClass(Enum):
    C = 0
    C_SHARP = 1
    D = 2
    D_SHARP = 3
    E = 4
    F = 5
    F_SHARP = 6
    G = 7
    G_SHARP = 8
    A = 9
    A_SHARP = 10
    B = 11

    @property
    def semitone(self) -> int:
        return self.value

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def parse(cls, text: str) -> "PitchClass":
        try:
            return _BY_SYMBOL[text.lower()]
        except KeyError:
            raise TimelineParseError("pitch_class", text) from None


_SYMBOLS = {
    PitchClass.C: "c",
    PitchClass.C_SHARP: "c#",
    PitchClass.D: "d",
    PitchClass.D_SHARP: "d#",
    PitchClass.E: "e",
    PitchClass.F: "f",
    PitchClass.F_SHARP: "f#",
    PitchClass.G: "g",
    PitchClass.G_SHARP: "g#",
    PitchClass.A: "a",
    PitchClass.A_SHARP: "a#",
    PitchClass.B: "b",
}
_BY_SYMBOL = {symbol: pitch for pitch, symbol in _SYMBOLS.items()}


class KeyDirection(Enum):
    DOWN = "d"
    UP = "u"


@dataclass(frozen=True, slots=True)
class Note:
    """Note identity: octave plus pitch class."""

    octave: int
    pitch_class: PitchClass

    def __str__(self) -> str:
        return f"{self.octave}{self.pitch_class.symbol}"


@dataclass(frozen=True, slots=True)
class NoteEvent:
    note: Note
    direction: KeyDirection

    def __str__(self) -> str:
        return f"{self.note}{self.direction.value}"


@dataclass(frozen=True, slots=True)
class TimedEvents:
    """Events sharing one instant, ``delta`` timesteps after the previous entry."""

    delta: int
    events: tuple[NoteEvent, ...] = ()


def parse_event(text: str) -> NoteEvent:
    """Parse a single ``<octave><pitch><direction>`` token."""

    token = text.strip()
    if not token:
        raise TimelineParseError("event", "empty event")

    note_part, direction_char = token[:-1], token[-1]
    try:
        direction = KeyDirection(direction_char)
    except ValueError:
        raise TimelineParseError("direction", direction_char) from None

    if not note_part:
        raise TimelineParseError("note", f"missing note in {token!r}")
    octave_char, pitch_text = note_part[0], note_part[1:]
    if not octave_char.isdecimal():
        raise TimelineParseError("octave", octave_char)
    if not pitch_text:
        raise TimelineParseError("pitch_class", f"missing pitch in {token!r}")

    note = Note(octave=int(octave_char), pitch_class=PitchClass.parse(pitch_text))
    return NoteEvent(note=note, direction=direction)


def parse_line(line: str) -> TimedEvents:
    """Parse one ``+<delta>| events`` line. Blank input yields an empty entry."""

    body = line.split(" #", 1)[0].strip()
    if not body:
        return TimedEvents(delta=0)

    timestep_part, sep, events_part = body.partition("|")
    if not sep:
        raise TimelineParseError("line", "expected format: +<delta>| events")

    timestep_part = timestep_part.strip()
    if not timestep_part.startswith("+"):
        raise TimelineParseError("timestep", "timestep must start with +")
    delta_text = timestep_part[1:]
    if not delta_text.isdecimal():
        raise TimelineParseError("timestep", timestep_part)

    events = tuple(
        parse_event(chunk)
        for chunk in (part.strip() for part in events_part.split(","))
        if chunk
    )
    return TimedEvents(delta=int(delta_text), events=events)


def parse_timeline(text: str | Iterable[str]) -> List[TimedEvents]:
    """Parse a whole timeline into chronological entries.

    Lines without events only contribute their delta, which is carried into
    the next entry. The first line is always kept so a leading offset
    survives even when it carries no events.
    """

    lines = text.splitlines() if isinstance(text, str) else text
    result: List[TimedEvents] = []
    carried = 0
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            timed = parse_line(line)
        except TimelineParseError as exc:
            raise exc.at_line(number) from None
        if timed.events or not result:
            result.append(TimedEvents(delta=timed.delta + carried, events=timed.events))
            carried = 0
        else:
            carried += timed.delta
    return result


def load_timeline(path: str | Path) -> List[TimedEvents]:
    """Read and parse the timeline stored at ``path``."""

    with open(path, "r", encoding="utf8") as fh:
        return parse_timeline(fh.read())


def format_timeline(entries: Iterable[TimedEvents]) -> str:
    """Render entries back into the text format."""

    return "\n".join(
        f"+{entry.delta}| " + ", ".join(str(event) for event in entry.events)
        for entry in entries
    ) + "\n"


__all__ = [
    "KeyDirection",
    "Note",
    "NoteEvent",
    "PitchClass",
    "TimedEvents",
    "format_timeline",
    "load_timeline",
    "parse_event",
    "parse_line",
    "parse_timeline",
]
