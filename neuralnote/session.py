"""Transcription session state: parameters, post-processing and display text."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum

from .constants import MAX_MIDI_NOTE, MIN_MIDI_NOTE
from .note_options import NoteOptions
from .note_utils import RootNote, ScaleType, SnapMode
from .notes import (
    NoteEvent,
    PitchBendMode,
    drop_overlapping_pitch_bends,
    merge_overlapping_notes_with_same_pitch,
)
from .rhythm_options import PositionInfo, RhythmOptions, TimeSignature
from .rhythm_utils import TimeDivision

DEFAULT_MIDI_FILE_TEMPO = 120.0


class State(IntEnum):
    EMPTY_AUDIO_AND_MIDI_REGIONS = 0
    RECORDING = 1
    PROCESSING = 2
    POPULATED_AUDIO_AND_MIDI_REGIONS = 3


@dataclass
class Parameters:
    """User-facing transcription and post-processing settings."""

    note_sensibility: float = 0.7
    split_sensibility: float = 0.5
    min_note_duration_ms: float = 125.0
    pitch_bend_mode: PitchBendMode = PitchBendMode.NONE

    min_midi_note: int = MIN_MIDI_NOTE
    max_midi_note: int = MAX_MIDI_NOTE
    key_root_note: RootNote = RootNote.C
    key_type: ScaleType = ScaleType.CHROMATIC
    key_snap_mode: SnapMode = SnapMode.REMOVE

    rhythm_time_division: TimeDivision = TimeDivision.DIV_1_8
    rhythm_quantization_force: float = 0.0


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


class TranscriptionSession:
    """Holds a transcription and turns its raw note events into the final notes."""

    def __init__(self) -> None:
        self.parameters = Parameters()
        self._note_options = NoteOptions()
        self._rhythm_options = RhythmOptions()
        self.clear()

    def clear(self) -> None:
        """Forget the transcription and the recording context."""
        self.state = State.EMPTY_AUDIO_AND_MIDI_REGIONS
        self._raw_events: list[NoteEvent] = []
        self.note_events: list[NoteEvent] = []
        self.record_start_info: PositionInfo | None = None
        self.dropped_filename = ""
        self.current_tempo = -1.0
        self.current_time_signature: TimeSignature | None = None
        self.midi_file_tempo = DEFAULT_MIDI_FILE_TEMPO

    def set_record_start(self, position_info: PositionInfo | None) -> None:
        """Start recording with the host transport state at that moment."""
        if position_info is not None:
            if position_info.bpm is not None:
                self.current_tempo = float(position_info.bpm)
            if position_info.time_signature is not None:
                self.current_time_signature = position_info.time_signature
        self.record_start_info = position_info
        self._rhythm_options.set_info(False, position_info)
        self.state = State.RECORDING

    def set_file_drop(self, filename: str) -> None:
        """Mark the audio as coming from a dropped file, which cannot be quantized."""
        self._rhythm_options.set_info(True)
        self.dropped_filename = filename

    def set_transcription(self, note_events: Iterable[NoteEvent]) -> list[NoteEvent]:
        """Store freshly transcribed events, post-process them and return the result."""
        self._raw_events = list(note_events)
        self.state = State.POPULATED_AUDIO_AND_MIDI_REGIONS
        self._post_process()
        self.midi_file_tempo = (
            self.current_tempo if self.current_tempo > 0 else DEFAULT_MIDI_FILE_TEMPO
        )
        return self.note_events

    def update_post_processing(self) -> list[NoteEvent]:
        """Re-apply key, range and rhythm settings to the stored transcription."""
        if self.state != State.POPULATED_AUDIO_AND_MIDI_REGIONS:
            raise RuntimeError("no transcription to post-process")
        self._post_process()
        return self.note_events

    def _post_process(self) -> None:
        params = self.parameters
        self._note_options.set_parameters(
            params.key_root_note,
            params.key_type,
            params.key_snap_mode,
            params.min_midi_note,
            params.max_midi_note,
        )
        in_key = self._note_options.process(self._raw_events)

        self._rhythm_options.set_parameters(
            params.rhythm_time_division, params.rhythm_quantization_force
        )
        events = self._rhythm_options.quantize(in_key)

        drop_overlapping_pitch_bends(events)
        merge_overlapping_notes_with_same_pitch(events)
        self.note_events = events

    def can_quantize(self) -> bool:
        return self._rhythm_options.can_perform_quantization()

    def tempo_str(self) -> str:
        """Tempo to display: recording start tempo, else current, else ``-``."""
        info = self.record_start_info
        if info is not None and info.bpm is not None:
            return str(_round_half_away(info.bpm))
        if self.current_tempo > 0:
            return str(_round_half_away(self.current_tempo))
        return "-"

    def time_signature_str(self) -> str:
        """Time signature to display, such as ``4 / 4``, or ``- / -``."""
        info = self.record_start_info
        if info is not None and info.time_signature is not None:
            signature = info.time_signature
            return f"{signature.numerator} / {signature.denominator}"
        signature = self.current_time_signature
        if signature is not None and signature.numerator > 0 and signature.denominator > 0:
            return f"{signature.numerator} / {signature.denominator}"
        return "- / -"