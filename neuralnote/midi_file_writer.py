"""Standard MIDI file creation from note events."""

from __future__ import annotations

import math
import os
import sys
from collections.abc import Iterable

import mido

from .constants import BASIC_PITCH_SAMPLE_RATE, FFT_HOP
from .notes import NoteEvent, PitchBendMode
from .rhythm_options import PositionInfo

TICKS_PER_QUARTER_NOTE = 960
PITCH_BEND_RANGE_SEMITONES = 4.0
DEFAULT_TIME_SIGNATURE = (4, 4)

_PITCHWHEEL_CENTRE = 8192
_PITCHWHEEL_MAX = 16383
_CHANNEL = 0


def bpm_to_microseconds_per_quarter_note(tempo_bpm: float) -> float:
    """Length of one quarter note in microseconds at ``tempo_bpm``."""
    if tempo_bpm <= 0:
        raise ValueError(f"tempo must be positive, got {tempo_bpm}")
    beats_per_second = tempo_bpm / 60.0
    seconds_per_beat = 1.0 / beats_per_second
    return 1.0e6 * seconds_per_beat


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


def _approximately_equal(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=sys.float_info.epsilon, abs_tol=sys.float_info.min)


def _velocity(amplitude: float) -> int:
    return max(0, min(127, round(float(amplitude) * 127.0)))


def _pitchwheel_value(semitones: float) -> int:
    """Pitch wheel value (centred on zero) for a bend in semitones."""
    bend_range = PITCH_BEND_RANGE_SEMITONES
    if semitones > 0.0:
        position = _PITCHWHEEL_CENTRE + (_PITCHWHEEL_MAX - _PITCHWHEEL_CENTRE) * semitones / bend_range
    else:
        position = _PITCHWHEEL_CENTRE * (semitones + bend_range) / bend_range
    position = min(max(position, 0.0), float(_PITCHWHEEL_MAX))
    return int(position) - _PITCHWHEEL_CENTRE


def _time_signature_message(numerator: int, denominator: int) -> mido.MetaMessage:
    if numerator <= 0:
        raise ValueError(f"time signature numerator must be positive, got {numerator}")
    if denominator <= 0 or denominator & (denominator - 1):
        raise ValueError(
            f"time signature denominator must be a power of two, got {denominator}"
        )
    power_of_two = denominator.bit_length() - 1
    return mido.MetaMessage(
        "time_signature",
        numerator=numerator,
        denominator=denominator,
        clocks_per_click=96 >> power_of_two,
        notated_32nd_notes_per_beat=8,
    )


def _start_offset(position_info: PositionInfo | None, tempo: float) -> float:
    """Seconds from the previous bar start to the start of the recording."""
    if position_info is None or not position_info.is_playing:
        return 0.0
    if (
        position_info.bpm is None
        or position_info.ppq_position is None
        or position_info.ppq_position_of_last_bar_start is None
        or not _approximately_equal(position_info.bpm, tempo)
    ):
        return 0.0
    return (
        (position_info.ppq_position - position_info.ppq_position_of_last_bar_start)
        * 60.0
        / position_info.bpm
    )


def build_midi_file(
    note_events: Iterable[NoteEvent],
    position_info: PositionInfo | None = None,
    bpm: float = 120.0,
    pitch_bend_mode: PitchBendMode = PitchBendMode.NONE,
) -> mido.MidiFile:
    """Build a single-track MIDI file for the events at the given tempo.

    When the host was playing at the same tempo when recording started, the
    notes are shifted so that the file starts at the previous bar.
    """
    tempo = float(bpm)
    microseconds = bpm_to_microseconds_per_quarter_note(tempo)

    numerator, denominator = DEFAULT_TIME_SIGNATURE
    if position_info is not None and position_info.time_signature is not None:
        numerator = position_info.time_signature.numerator
        denominator = position_info.time_signature.denominator
    start_offset = _start_offset(position_info, tempo)

    ticks_per_second = tempo / 60.0 * TICKS_PER_QUARTER_NOTE
    timed: list[tuple[float, mido.Message | mido.MetaMessage]] = [
        (0.0, mido.MetaMessage("set_tempo", tempo=_round_half_away(microseconds))),
        (0.0, _time_signature_message(numerator, denominator)),
    ]

    previous_bend = 0.0
    for note in note_events:
        start = note.start_time + start_offset
        timed.append(
            (
                start * ticks_per_second,
                mido.Message(
                    "note_on", channel=_CHANNEL, note=note.pitch, velocity=_velocity(note.amplitude)
                ),
            )
        )

        if pitch_bend_mode == PitchBendMode.SINGLE:
            for i, bend in enumerate(note.bends):
                previous_bend = bend / 3.0
                bend_time = start + i * FFT_HOP / BASIC_PITCH_SAMPLE_RATE
                timed.append(
                    (
                        bend_time * ticks_per_second,
                        mido.Message(
                            "pitchwheel", channel=_CHANNEL, pitch=_pitchwheel_value(previous_bend)
                        ),
                    )
                )
            if not note.bends and previous_bend != 0.0:
                previous_bend = 0.0
                timed.append(
                    (
                        start * ticks_per_second,
                        mido.Message("pitchwheel", channel=_CHANNEL, pitch=_pitchwheel_value(0.0)),
                    )
                )

        timed.append(
            (
                (note.end_time + start_offset) * ticks_per_second,
                mido.Message("note_off", channel=_CHANNEL, note=note.pitch, velocity=0),
            )
        )

    timed.sort(key=lambda item: item[0])

    track = mido.MidiTrack()
    last_tick = 0
    for timestamp, message in timed:
        tick = round(timestamp)
        track.append(message.copy(time=max(0, tick - last_tick)))
        last_tick = tick
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi_file = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER_NOTE)
    midi_file.tracks.append(track)
    return midi_file


def write_midi_file(
    note_events: Iterable[NoteEvent],
    path: str | os.PathLike,
    position_info: PositionInfo | None = None,
    bpm: float = 120.0,
    pitch_bend_mode: PitchBendMode = PitchBendMode.NONE,
) -> mido.MidiFile:
    """Write the events to ``path`` as a standard MIDI file and return it."""
    midi_file = build_midi_file(note_events, position_info, bpm, pitch_bend_mode)
    midi_file.save(os.fspath(path))
    return midi_file