import mido
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from neuralnote.midi_file_writer import (
    TICKS_PER_QUARTER_NOTE,
    bpm_to_microseconds_per_quarter_note,
    build_midi_file,
    write_midi_file,
)
from neuralnote.notes import NoteEvent, PitchBendMode
from neuralnote.rhythm_options import PositionInfo, TimeSignature


def _event(start, end, pitch=60, amplitude=1.0, bends=None):
    return NoteEvent(
        start_time=start,
        end_time=end,
        start_frame=0,
        end_frame=1,
        pitch=pitch,
        amplitude=amplitude,
        bends=list(bends or []),
    )


def _absolute(track):
    tick = 0
    result = []
    for message in track:
        tick += message.time
        result.append((tick, message))
    return result


def _of_type(track, kind):
    return [(tick, msg) for tick, msg in _absolute(track) if msg.type == kind]


def test_tempo_conversion_at_120_bpm():
    assert bpm_to_microseconds_per_quarter_note(120.0) == pytest.approx(500000.0)


def test_tempo_conversion_is_inverse_of_bpm():
    for bpm in (60.0, 90.0, 133.0):
        assert bpm_to_microseconds_per_quarter_note(bpm) * bpm == pytest.approx(60.0e6)


def test_tempo_conversion_rejects_non_positive():
    with pytest.raises(ValueError):
        bpm_to_microseconds_per_quarter_note(0.0)


def test_empty_file_has_tempo_and_default_time_signature():
    midi = build_midi_file([], bpm=120.0)
    assert midi.ticks_per_beat == TICKS_PER_QUARTER_NOTE
    assert len(midi.tracks) == 1
    tempo = _of_type(midi.tracks[0], "set_tempo")
    signature = _of_type(midi.tracks[0], "time_signature")
    assert tempo[0][1].tempo == 500000
    assert (signature[0][1].numerator, signature[0][1].denominator) == (4, 4)
    assert signature[0][1].clocks_per_click == 24


def test_note_times_round_trip_to_seconds():
    bpm = 100.0
    midi = build_midi_file([_event(1.2, 2.7)], bpm=bpm)
    (on_tick, on), = _of_type(midi.tracks[0], "note_on")
    (off_tick, off), = _of_type(midi.tracks[0], "note_off")
    assert on_tick / TICKS_PER_QUARTER_NOTE * 60.0 / bpm == pytest.approx(1.2, abs=1e-3)
    assert off_tick / TICKS_PER_QUARTER_NOTE * 60.0 / bpm == pytest.approx(2.7, abs=1e-3)
    assert on.note == off.note == 60


def test_full_amplitude_gives_full_velocity():
    midi = build_midi_file([_event(0.0, 1.0, amplitude=1.0)])
    (_, on), = _of_type(midi.tracks[0], "note_on")
    assert on.velocity == 127


def test_velocity_grows_with_amplitude():
    midi = build_midi_file([_event(0.0, 1.0, pitch=60, amplitude=0.2),
                            _event(0.0, 1.0, pitch=62, amplitude=0.8)])
    velocities = {msg.note: msg.velocity for _, msg in _of_type(midi.tracks[0], "note_on")}
    assert velocities[60] < velocities[62]


def test_no_pitch_bends_without_single_mode():
    events = [_event(0.0, 1.0, bends=[1, 2, 3])]
    for mode in (PitchBendMode.NONE, PitchBendMode.MULTI):
        midi = build_midi_file(events, pitch_bend_mode=mode)
        assert _of_type(midi.tracks[0], "pitchwheel") == []


def test_single_mode_writes_one_bend_per_value():
    events = [_event(0.0, 1.0, bends=[0, 3, -3])]
    midi = build_midi_file(events, pitch_bend_mode=PitchBendMode.SINGLE)
    wheels = [msg.pitch for _, msg in _of_type(midi.tracks[0], "pitchwheel")]
    assert len(wheels) == 3
    assert wheels[0] == 0
    assert wheels[1] > 0
    assert wheels[2] < 0


def test_bend_is_reset_for_note_without_bends():
    events = [_event(0.0, 1.0, pitch=60, bends=[3]), _event(2.0, 3.0, pitch=64)]
    midi = build_midi_file(events, pitch_bend_mode=PitchBendMode.SINGLE)
    wheels = _of_type(midi.tracks[0], "pitchwheel")
    note_on_ticks = {msg.note: tick for tick, msg in _of_type(midi.tracks[0], "note_on")}
    assert len(wheels) == 2
    assert wheels[-1][1].pitch == 0
    assert wheels[-1][0] == note_on_ticks[64]


def test_large_bends_stay_in_pitchwheel_range():
    events = [_event(0.0, 1.0, bends=[25, -25])]
    midi = build_midi_file(events, pitch_bend_mode=PitchBendMode.SINGLE)
    wheels = [msg.pitch for _, msg in _of_type(midi.tracks[0], "pitchwheel")]
    assert all(-8192 <= value <= 8191 for value in wheels)


def test_time_signature_taken_from_position_info():
    info = PositionInfo(bpm=120.0, time_signature=TimeSignature(3, 8))
    midi = build_midi_file([], position_info=info)
    (_, signature), = _of_type(midi.tracks[0], "time_signature")
    assert (signature.numerator, signature.denominator) == (3, 8)


def test_invalid_time_signature_denominator_raises():
    info = PositionInfo(time_signature=TimeSignature(4, 3))
    with pytest.raises(ValueError):
        build_midi_file([], position_info=info)


def test_offset_applied_only_when_host_tempo_matches():
    events = [_event(0.5, 1.0)]
    info = PositionInfo(
        bpm=120.0,
        time_signature=TimeSignature(4, 4),
        ppq_position=5.5,
        ppq_position_of_last_bar_start=4.0,
        is_playing=True,
    )
    plain = _of_type(build_midi_file(events, bpm=120.0).tracks[0], "note_on")[0][0]
    shifted = _of_type(build_midi_file(events, info, bpm=120.0).tracks[0], "note_on")[0][0]
    other_tempo = _of_type(build_midi_file(events, info, bpm=90.0).tracks[0], "note_on")[0][0]
    plain_90 = _of_type(build_midi_file(events, bpm=90.0).tracks[0], "note_on")[0][0]
    assert shifted > plain
    assert other_tempo == plain_90


def test_no_offset_when_host_not_playing():
    events = [_event(0.5, 1.0)]
    info = PositionInfo(
        bpm=120.0, ppq_position=5.5, ppq_position_of_last_bar_start=4.0, is_playing=False
    )
    with_info = build_midi_file(events, info, bpm=120.0)
    without = build_midi_file(events, bpm=120.0)
    assert list(with_info.tracks[0]) == list(without.tracks[0])


def test_write_and_read_back(tmp_path):
    events = [_event(0.0, 1.0, pitch=60, bends=[1, 2]), _event(0.5, 1.5, pitch=67, amplitude=0.5)]
    path = tmp_path / "out.mid"
    written = write_midi_file(events, path, None, 110.0, PitchBendMode.SINGLE)
    read = mido.MidiFile(path)
    assert read.ticks_per_beat == TICKS_PER_QUARTER_NOTE
    assert list(read.tracks[0]) == list(written.tracks[0])


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        write_midi_file([_event(0.0, 1.0)], tmp_path / "missing" / "out.mid")


@settings(max_examples=30, deadline=None)
@given(
    st.lists(
        st.tuples(
            st.floats(0.0, 20.0), st.floats(0.01, 5.0), st.integers(21, 108)
        ),
        max_size=12,
    )
)
def test_messages_are_time_ordered_and_paired(specs):
    events = [_event(start, start + length, pitch=pitch) for start, length, pitch in specs]
    track = build_midi_file(events).tracks[0]
    assert all(message.time >= 0 for message in track)
    assert len(_of_type(track, "note_on")) == len(events)
    assert len(_of_type(track, "note_off")) == len(events)
    assert track[-1].type == "end_of_track"