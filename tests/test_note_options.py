import pytest
from hypothesis import given
from hypothesis import strategies as st

from neuralnote.constants import MAX_MIDI_NOTE, MIN_MIDI_NOTE
from neuralnote.note_options import MAJOR_SCALE_INTERVALS, NoteOptions
from neuralnote.note_utils import RootNote, ScaleType, SnapMode
from neuralnote.notes import NoteEvent


def make_event(pitch, bends=(), start_frame=0, end_frame=20):
    return NoteEvent(
        start_time=start_frame * 0.01,
        end_time=end_frame * 0.01,
        start_frame=start_frame,
        end_frame=end_frame,
        pitch=pitch,
        amplitude=0.5,
        bends=list(bends),
    )


def configured(root, scale, snap, low=MIN_MIDI_NOTE, high=MAX_MIDI_NOTE):
    options = NoteOptions()
    options.set_parameters(root, scale, snap, low, high)
    return options


def test_default_is_chromatic_and_keeps_full_range():
    events = [make_event(MIN_MIDI_NOTE), make_event(61), make_event(MAX_MIDI_NOTE)]
    result = NoteOptions().process(events)
    assert [e.pitch for e in result] == [MIN_MIDI_NOTE, 61, MAX_MIDI_NOTE]


def test_range_filter_is_inclusive():
    options = configured(RootNote.C, ScaleType.CHROMATIC, SnapMode.REMOVE, 40, 70)
    events = [make_event(p) for p in (39, 40, 55, 70, 71)]
    assert [e.pitch for e in options.process(events)] == [40, 55, 70]


def test_remove_keeps_only_c_major_notes():
    options = configured(RootNote.C, ScaleType.MAJOR, SnapMode.REMOVE)
    events = [make_event(p) for p in range(60, 72)]
    kept = [e.pitch for e in options.process(events)]
    assert kept == [60 + interval for interval in MAJOR_SCALE_INTERVALS]


def test_relative_minor_matches_major():
    major = configured(RootNote.C, ScaleType.MAJOR, SnapMode.REMOVE)
    minor = configured(RootNote.A, ScaleType.MINOR, SnapMode.REMOVE)
    events = [make_event(p) for p in range(MIN_MIDI_NOTE, MAX_MIDI_NOTE + 1)]
    assert [e.pitch for e in major.process(events)] == [e.pitch for e in minor.process(events)]


def test_adjust_direction_follows_bends():
    options = configured(RootNote.C, ScaleType.MAJOR, SnapMode.ADJUST)
    up, down, flat = options.process(
        [make_event(61, [1, 2]), make_event(61, [-3, 1]), make_event(61)]
    )
    assert up.pitch == 61 + 1
    assert down.pitch == 61 - 1
    assert flat.pitch == 61 + 1


def test_adjust_leaves_notes_in_key():
    options = configured(RootNote.C, ScaleType.MAJOR, SnapMode.ADJUST)
    (result,) = options.process([make_event(64, [-5])])
    assert result.pitch == 64


def test_adjust_at_range_edges_turns_back():
    options = configured(RootNote.C_SHARP, ScaleType.MAJOR, SnapMode.ADJUST)
    top, bottom = options.process(
        [make_event(MAX_MIDI_NOTE - 1, [1]), make_event(MIN_MIDI_NOTE, [-1])]
    )
    assert top.pitch == MAX_MIDI_NOTE - 2
    assert bottom.pitch == MIN_MIDI_NOTE + 1


def test_input_events_are_not_modified():
    options = configured(RootNote.C, ScaleType.MAJOR, SnapMode.ADJUST)
    original = make_event(61, [2, 1])
    (result,) = options.process([original])
    assert original.pitch == 61
    assert result is not original
    result.bends.append(9)
    assert original.bends == [2, 1]


def test_other_fields_are_preserved():
    options = configured(RootNote.C, ScaleType.MAJOR, SnapMode.ADJUST)
    original = make_event(61, [1], start_frame=5, end_frame=30)
    (result,) = options.process([original])
    assert (result.start_frame, result.end_frame, result.amplitude, result.bends) == (
        original.start_frame,
        original.end_frame,
        original.amplitude,
        original.bends,
    )


@given(
    root=st.sampled_from(list(RootNote)),
    scale=st.sampled_from([ScaleType.MAJOR, ScaleType.MINOR]),
    pitch=st.integers(MIN_MIDI_NOTE, MAX_MIDI_NOTE),
    bends=st.lists(st.integers(-10, 10), max_size=5),
)
def test_adjusted_notes_land_in_key(root, scale, pitch, bends):
    adjust = configured(root, scale, SnapMode.ADJUST)
    remove = configured(root, scale, SnapMode.REMOVE)
    (result,) = adjust.process([make_event(pitch, bends)])
    assert abs(result.pitch - pitch) <= 1
    assert len(remove.process([result])) == 1


def test_invalid_enum_value_is_rejected():
    options = NoteOptions()
    with pytest.raises(ValueError):
        options.set_parameters(RootNote.C, 7, SnapMode.REMOVE, 21, 108)