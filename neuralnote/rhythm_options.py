"""Time quantization of note events against the host tempo grid."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace

from .notes import NoteEvent
from .rhythm_utils import TimeDivision


@dataclass(frozen=True)
class TimeSignature:
    numerator: int
    denominator: int


@dataclass(frozen=True)
class PositionInfo:
    """Host transport state; ``None`` marks a value the host did not provide."""

    bpm: float | None = None
    time_signature: TimeSignature | None = None
    ppq_position: float | None = None
    ppq_position_of_last_bar_start: float | None = None
    is_playing: bool = False


def quantize_time(
    event_time: float,
    bpm: float,
    time_division: float,
    start_time_qn: float,
    quantization_force: float,
) -> float:
    """Move ``event_time`` toward the nearest division tick.

    ``start_time_qn`` is the offset in quarter notes from the previous bar
    start, which serves as the grid origin. A force of 0 leaves the time
    unchanged and 1 snaps it onto the grid.
    """
    if event_time < 0.0:
        raise ValueError(f"event time must not be negative, got {event_time}")
    if bpm <= 0.0 or time_division <= 0.0:
        raise ValueError("tempo and time division must be positive")

    seconds_per_qn = 60.0 / bpm
    division_duration = time_division * 4.0 * seconds_per_qn

    time_origin = start_time_qn * seconds_per_qn
    shifted_time = event_time + time_origin

    since_previous = math.fmod(shifted_time, division_duration)
    previous_tick = shifted_time - since_previous
    target = (
        previous_tick
        if since_previous < division_duration / 2.0
        else previous_tick + division_duration
    )

    quantized_shifted = shifted_time + float(quantization_force) * (target - shifted_time)
    return quantized_shifted - time_origin


class RhythmOptions:
    """Holds recording context and quantizes note timings to a grid."""

    def __init__(self) -> None:
        self.division = TimeDivision.DIV_1_4
        self.quantization_force = 0.0
        self._dropped_file = False
        self._position_info: PositionInfo | None = None
        self._can_quantize = False

    def set_info(self, dropped_file: bool, position_info: PositionInfo | None = None) -> None:
        """Record where the audio came from and the transport state at its start."""
        self._dropped_file = bool(dropped_file)
        self._position_info = None
        self._can_quantize = False

        if self._dropped_file or position_info is None:
            return

        self._position_info = position_info
        self._can_quantize = (
            position_info.is_playing
            and position_info.bpm is not None
            and position_info.ppq_position_of_last_bar_start is not None
            and position_info.ppq_position is not None
            and position_info.time_signature is not None
        )

    def can_perform_quantization(self) -> bool:
        return self._can_quantize

    def set_parameters(self, division: TimeDivision, quantization_force: float) -> None:
        self.division = TimeDivision(division)
        self.quantization_force = float(quantization_force)

    def quantize(self, note_events: Iterable[NoteEvent]) -> list[NoteEvent]:
        """Return new events whose start is quantized and whose duration is kept."""
        if not self._can_quantize:
            return [replace(event, bends=list(event.bends)) for event in note_events]

        info = self._position_info
        bpm = info.bpm
        start_pos_qn = info.ppq_position - info.ppq_position_of_last_bar_start
        time_division = self.division.fraction()

        quantized: list[NoteEvent] = []
        for event in note_events:
            duration = event.end_time - event.start_time
            if duration <= 0.0:
                raise ValueError(f"note event has non-positive duration {duration}")
            new_start = quantize_time(
                event.start_time, bpm, time_division, start_pos_qn, self.quantization_force
            )
            quantized.append(
                replace(
                    event,
                    start_time=new_start,
                    end_time=new_start + duration,
                    bends=list(event.bends),
                )
            )
        return quantized