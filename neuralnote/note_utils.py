"""Note names, scale types and snap modes."""

from enum import IntEnum

ROOT_NOTES_SHARP = ("A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#")
ROOT_NOTES_FLAT = ("A", "Bb", "B", "C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab")
SCALE_TYPE_NAMES = ("Chromatic", "Major", "Minor")
SNAP_MODE_NAMES = ("Adjust", "Remove")


class RootNote(IntEnum):
    """Root note of a key, indexed from A."""

    A = 0
    A_SHARP = 1
    B = 2
    C = 3
    C_SHARP = 4
    D = 5
    D_SHARP = 6
    E = 7
    F = 8
    F_SHARP = 9
    G = 10
    G_SHARP = 11

    @property
    def label(self) -> str:
        return ROOT_NOTES_SHARP[self.value]


class ScaleType(IntEnum):
    CHROMATIC = 0
    MAJOR = 1
    MINOR = 2

    @property
    def label(self) -> str:
        return SCALE_TYPE_NAMES[self.value]


class SnapMode(IntEnum):
    ADJUST = 0
    REMOVE = 1

    @property
    def label(self) -> str:
        return SNAP_MODE_NAMES[self.value]


def midi_note_to_str(note_number: int) -> str:
    """Return the sharp note name with octave, e.g. ``C4`` for middle C."""
    if note_number < 0:
        raise ValueError(f"invalid MIDI note number: {note_number}")
    octave = note_number // 12 - 1
    name = ROOT_NOTES_SHARP[(note_number + 3) % 12]
    return f"{name}{octave}"