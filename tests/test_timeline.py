from __future__ import annotations

import pytest

from fmsynth.errors import TimelineParseError
from fmsynth.timeline import (
    KeyDirection,
    Note,
    NoteEvent,
    PitchClass,
    TimedEvents,
    format_timeline,
    load_timeline,
    parse_event,
    parse_line,
    parse_timeline,
)


def test_parse_event_variants():
    assert parse_event("4c#d") == NoteEvent(Note(4, PitchClass.C_SHARP), KeyDirection.DOWN)
    assert parse_event(" 3au ") == NoteEvent(Note(3, PitchClass.A), KeyDirection.UP)
    assert parse_event("0F#d").note.pitch_class is PitchClass.F_SHARP
    assert parse_event("4dd").note == Note(4, PitchClass.D)


@pytest.mark.parametrize(
    ("token", "kind"),
    [
        ("", "event"),
        ("4cx", "direction"),
        ("d", "note"),
        ("xcd", "octave"),
        ("4d", "pitch_class"),
        ("4hd", "pitch_class"),
    ],
)
def test_parse_event_errors(token, kind):
    with pytest.raises(TimelineParseError) as excinfo:
        parse_event(token)
    assert excinfo.value.kind == kind


def test_parse_line_with_comment_and_chord():
    entry = parse_line("+4| 4cd, 4ed, 4gd  # C major")
    assert entry.delta == 4
    assert [str(e) for e in entry.events] == ["4cd", "4ed", "4gd"]


@pytest.mark.parametrize(
    ("line", "kind"),
    [
        ("4cd", "line"),
        ("4| 4cd", "timestep"),
        ("+x| 4cd", "timestep"),
        ("+-1| 4cd", "timestep"),
    ],
)
def test_parse_line_errors(line, kind):
    with pytest.raises(TimelineParseError) as excinfo:
        parse_line(line)
    assert excinfo.value.kind == kind


def test_parse_timeline_skips_comments_and_carries_empty_deltas():
    text = """
    # header comment
    +2|
    +0| 4cd

    +3|             # a rest
    +5| 4cu
    """
    entries = parse_timeline(text)

    assert entries[0] == TimedEvents(2, ())
    assert entries[1].delta == 0
    assert entries[2].delta == 8
    assert entries[2].events[0].direction is KeyDirection.UP
    assert len(entries) == 3


def test_parse_timeline_reports_line_number():
    with pytest.raises(TimelineParseError) as excinfo:
        parse_timeline("+0| 4cd\n+1| 4zz\n")
    assert excinfo.value.line_number == 2
    assert "line 2" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_load_and_format(tmp_path):
    path = tmp_path / "song.txt"
    path.write_text("+0| 4cd, 4ed\n+10| 4cu, 4eu\n", encoding="utf8")

    entries = load_timeline(path)

    assert format_timeline(entries) == "+0| 4cd, 4ed\n+10| 4cu, 4eu\n"
    assert PitchClass.B.semitone == 11
