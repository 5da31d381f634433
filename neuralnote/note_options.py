"""Key and range filtering of note events."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from .constants import MAX_MIDI_NOTE, MIN_MIDI_NOTE
from .note_utils import RootNote, ScaleType, SnapMode
from .notes import NoteEvent

MAJOR_SCALE_INTERVALS = (0, 2, 4, 5, 7, 9, 11)
MINOR_SCALE_INTERVALS = (0, 2, 3, 5, 7, 8, 10)

_SCALE_INTERVALS = {
    ScaleType.MAJOR: MAJOR_SCALE_INTERVALS,
    ScaleType.MINOR: MINOR_SCALE_INTERVALS,
}


def _root_note_index(root_note: RootNote) -> int:
    """Pitch class of a root note, with C as 0."""
    return (int(root_note) + 12 - 3) % 12


def _key_pitch_classes(root_note: RootNote, scale_type: ScaleType) -> frozenset[int]:
    intervals = _SCALE_INTERVALS.get(scale_type)
    if intervals is None:
        return frozenset()
    root_idx = _root_note_index(root_note)
    return frozenset((root_idx + interval) % 12 for interval in intervals)


def _closest_note_in_key(note: int, key: frozenset[int], adjust_up: bool) -> int:
    if note % 12 in key:
        return note
    if adjust_up:
        return note + 1 if note < MAX_MIDI_NOTE - 1 else note - 1
    return note - 1 if note > MIN_MIDI_NOTE else note + 1


def _copy_event(event: NoteEvent, **changes) -> NoteEvent:
    return replace(event, bends=list(event.bends), **changes)


class NoteOptions:
    """Keeps note events inside a pitch range and snaps them to a key."""

    def __init__(self) -> None:
        self.root_note = RootNote.C
        self.scale_type = ScaleType.CHROMATIC
        self.snap_mode = SnapMode.REMOVE
        self.min_midi_note = MIN_MIDI_NOTE
        self.max_midi_note = MAX_MIDI_NOTE

    def set_parameters(
        self,
        root_note: RootNote,
        scale_type: ScaleType,
        snap_mode: SnapMode,
        min_midi_note: int,
        max_midi_note: int,
    ) -> None:
        self.root_note = RootNote(root_note)
        self.scale_type = ScaleType(scale_type)
        self.snap_mode = SnapMode(snap_mode)
        self.min_midi_note = int(min_midi_note)
        self.max_midi_note = int(max_midi_note)

    def process(self, note_events: Iterable[NoteEvent]) -> list[NoteEvent]:
        """Return new events filtered by range and snapped or removed by key.

        Out-of-key notes are moved up when their pitch bends sum to zero or
        more, down otherwise. The input events are left untouched.
        """
        key = _key_pitch_classes(self.root_note, self.scale_type)
        processed: list[NoteEvent] = []

        for event in note_events:
            if not self.min_midi_note <= event.pitch <= self.max_midi_note:
                continue

            if self.scale_type == ScaleType.CHROMATIC:
                processed.append(_copy_event(event))
            elif self.snap_mode == SnapMode.REMOVE:
                if event.pitch % 12 in key:
                    processed.append(_copy_event(event))
            else:
                adjust_up = sum(event.bends) >= 0
                pitch = _closest_note_in_key(event.pitch, key, adjust_up)
                processed.append(_copy_event(event, pitch=pitch))

        return processed