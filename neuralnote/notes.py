"""Note event extraction from model posteriorgrams."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from .constants import (
    ANNOTATIONS_BASE_FREQUENCY,
    AUDIO_SAMPLE_RATE,
    CONTOURS_BINS_PER_SEMITONE,
    FFT_HOP,
    MAX_NOTE_IDX,
    MIDI_OFFSET,
    NUM_FREQ_OUT,
)

_GAUSSIAN_STD = 5.0


class PitchBendMode(IntEnum):
    NONE = 0
    SINGLE = 1
    MULTI = 2


@dataclass
class NoteEvent:
    """A detected note. ``pitch`` is a MIDI note number.

    ``bends`` holds one pitch bend value per frame, in thirds of a semitone.
    """

    start_time: float
    end_time: float
    start_frame: int
    end_frame: int
    pitch: int
    amplitude: float
    bends: list[int] = field(default_factory=list)


@dataclass
class ConvertParams:
    """Parameters controlling note creation from posteriorgrams."""

    # Note segmentation (0.05 - 0.95, split-merge notes).
    onset_threshold: float = 0.3
    # Confidence threshold (0.05 - 0.95, more-less notes).
    frame_threshold: float = 0.5
    # Minimum note length in frames.
    min_note_length: int = 11
    infer_onsets: bool = True
    # In Hz; a negative value means unset.
    max_frequency: float = -1.0
    min_frequency: float = -1.0
    melodia_trick: bool = True
    pitch_bend: PitchBendMode = PitchBendMode.NONE
    energy_threshold: int = 11


def model_frame_to_time(frame: int) -> float:
    """Time in seconds of the start of a model frame."""
    return (frame * FFT_HOP) / float(AUDIO_SAMPLE_RATE)


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


def hz_to_midi(hz: float) -> int:
    """Closest MIDI note number to a frequency in Hz."""
    if hz <= 0:
        raise ValueError(f"frequency must be positive, got {hz}")
    log_hz = float(np.log2(np.float32(hz)))
    return _round_half_away(12.0 * (log_hz - math.log2(440.0)) + 69.0)


def _as_matrix(pg, name: str) -> np.ndarray:
    array = np.asarray(pg, dtype=np.float32)
    if array.ndim != 2:
        raise ValueError(f"{name} posteriorgram must be two-dimensional")
    return array


def sort_events(events: list[NoteEvent]) -> None:
    """Sort events in place by start frame, then end frame."""
    events.sort(key=lambda event: (event.start_frame, event.end_frame))


def drop_overlapping_pitch_bends(events: list[NoteEvent]) -> None:
    """Clear the bends of every event that overlaps another. Expects sorted events."""
    for i, event in enumerate(events[:-1]):
        for other in events[i + 1:]:
            if other.start_frame >= event.end_frame:
                break
            event.bends = []
            other.bends = []


def merge_overlapping_notes_with_same_pitch(events: list[NoteEvent]) -> None:
    """Sort events in place and merge overlapping events of equal pitch."""
    sort_events(events)
    i = 0
    while i < len(events) - 1:
        event = events[i]
        j = i + 1
        while j < len(events):
            other = events[j]
            if other.start_frame >= event.end_frame:
                break
            if event.pitch == other.pitch:
                event.end_time = other.end_time
                event.end_frame = other.end_frame
                del events[j]
            j += 1
        i += 1


def inferred_onsets(onsets_pg, notes_pg, num_diffs: int = 2) -> np.ndarray:
    """Onsets augmented by frame-to-frame increases of the note posteriorgram."""
    if num_diffs < 1:
        raise ValueError("num_diffs must be at least 1")
    onsets = _as_matrix(onsets_pg, "onsets")
    notes = _as_matrix(notes_pg, "notes")
    if onsets.shape != notes.shape:
        raise ValueError("onsets and notes posteriorgrams must have the same shape")

    n_frames = notes.shape[0]
    notes_diff = np.ones_like(notes)
    late_rows = (np.arange(n_frames) >= num_diffs)[:, np.newaxis]

    for offset in range(1, num_diffs + 1):
        behind = np.zeros_like(notes)
        if offset < n_frames:
            behind[offset:] = notes[: n_frames - offset]
        diff = notes - behind
        replacement = np.where(late_rows, np.maximum(diff, np.float32(0)), np.float32(0))
        notes_diff = np.where(diff < notes_diff, replacement, notes_diff).astype(np.float32)

    max_onset = np.float32(max(0.0, float(onsets.max()))) if onsets.size else np.float32(0)
    max_min_diff = (
        np.float32(max(0.0, float(notes_diff.max()))) if notes_diff.size else np.float32(0)
    )

    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (max_onset * notes_diff) / max_min_diff
    return np.where(onsets > scaled, onsets, scaled).astype(np.float32)


def add_pitch_bends(events: list[NoteEvent], contours_pg, num_bins_tolerance: int = 25) -> None:
    """Append one pitch bend value per frame to each event, from the contours."""
    contours = _as_matrix(contours_pg, "contours")
    n_bins = NUM_FREQ_OUT * CONTOURS_BINS_PER_SEMITONE
    semitone_shift = round(math.log2(440.0 / ANNOTATIONS_BASE_FREQUENCY))
    tolerance = num_bins_tolerance

    for event in events:
        note_idx = CONTOURS_BINS_PER_SEMITONE * (event.pitch - 69 + 12 * semitone_shift)
        start = max(note_idx - tolerance, 0)
        end = min(n_bins, note_idx + tolerance + 1)
        width = max(end - start, 0)
        gauss_start = max(0, tolerance - note_idx)
        pb_shift = tolerance - gauss_start
        n_event_frames = max(event.end_frame - event.start_frame, 0)

        if width == 0:
            event.bends.extend([-pb_shift] * n_event_frames)
            continue
        if contours.shape[1] < end:
            raise ValueError("contours posteriorgram has too few frequency bins")

        x = np.float32(gauss_start) + np.arange(width, dtype=np.float32)
        n = x - np.float32(tolerance)
        weights = np.exp(
            -(n * n).astype(np.float64) / (2.0 * _GAUSSIAN_STD * _GAUSSIAN_STD)
        ).astype(np.float32)
        window = contours[event.start_frame:event.end_frame, start:end] * weights
        if window.shape[0] == 0:
            continue
        peaks = window.max(axis=1)
        best = np.where(peaks > 0, window.argmax(axis=1), 0) - pb_shift
        event.bends.extend(int(b) for b in best)


def _zero_neighbourhood(pg: np.ndarray, rows, note_idx: int) -> None:
    pg[rows, note_idx] = 0
    if note_idx < MAX_NOTE_IDX and note_idx + 1 < pg.shape[1]:
        pg[rows, note_idx + 1] = 0
    if note_idx > 0:
        pg[rows, note_idx - 1] = 0


def _inhibit(pg: np.ndarray, frame_idx: int, note_idx: int, threshold, k: int) -> int:
    k = k + 1 if pg[frame_idx, note_idx] < threshold else 0
    _zero_neighbourhood(pg, frame_idx, note_idx)
    return k


def _column_mean(column: np.ndarray) -> float:
    return sum(column.astype(np.float64).tolist()) / len(column)


def convert(notes_pg, onsets_pg, contours_pg, params: ConvertParams | None = None) -> list[NoteEvent]:
    """Create sorted note events from note, onset and contour posteriorgrams."""
    if params is None:
        params = ConvertParams()
    if len(notes_pg) == 0:
        return []

    notes = _as_matrix(notes_pg, "notes")
    onsets_in = _as_matrix(onsets_pg, "onsets")
    contours = _as_matrix(contours_pg, "contours")
    n_frames, n_notes = notes.shape
    if onsets_in.shape != notes.shape:
        raise ValueError("onsets and notes posteriorgrams must have the same shape")
    if contours.shape[0] != n_frames:
        raise ValueError("contours and notes posteriorgrams must have the same frame count")

    onsets = inferred_onsets(onsets_in, notes) if params.infer_onsets else onsets_in
    remaining = notes.copy()

    frame_threshold = np.float32(params.frame_threshold)
    onset_threshold = np.float32(params.onset_threshold)

    max_note_idx = (
        n_notes - 1 if params.max_frequency < 0 else hz_to_midi(params.max_frequency) - MIDI_OFFSET
    )
    min_note_idx = 0 if params.min_frequency < 0 else hz_to_midi(params.min_frequency) - MIDI_OFFSET
    max_note_idx = min(max_note_idx, n_notes - 1)
    min_note_idx = max(min_note_idx, 0)

    # Stop one frame early to avoid an edge case at the end.
    last_frame = n_frames - 1
    has_range = last_frame >= 1 and min_note_idx <= max_note_idx
    events: list[NoteEvent] = []

    if has_range:
        band = slice(min_note_idx, max_note_idx + 1)
        current = onsets[:last_frame, band]
        previous = np.concatenate([current[:1], onsets[: last_frame - 1, band]])
        following = onsets[1: last_frame + 1, band]
        peaks = (current >= onset_threshold) & (current >= previous) & (current >= following)

        for frame_idx in range(last_frame - 1, -1, -1):
            for offset in np.flatnonzero(peaks[frame_idx])[::-1]:
                note_idx = min_note_idx + int(offset)
                i = frame_idx + 1
                k = 0
                while i < last_frame and k < params.energy_threshold:
                    k = k + 1 if remaining[i, note_idx] < frame_threshold else 0
                    i += 1
                i -= k
                if i - frame_idx <= params.min_note_length:
                    continue
                amplitude = _column_mean(remaining[frame_idx:i, note_idx])
                _zero_neighbourhood(remaining, slice(frame_idx, i), note_idx)
                events.append(
                    NoteEvent(
                        start_time=model_frame_to_time(frame_idx),
                        end_time=model_frame_to_time(i),
                        start_frame=frame_idx,
                        end_frame=i,
                        pitch=note_idx + MIDI_OFFSET,
                        amplitude=amplitude,
                    )
                )

    if params.melodia_trick and has_range:
        frames = np.arange(last_frame - 1, -1, -1)
        cols = np.arange(max_note_idx, min_note_idx - 1, -1)
        grid_frames = np.repeat(frames, len(cols))
        grid_notes = np.tile(cols, len(frames))
        values = remaining[grid_frames, grid_notes]
        order = np.argsort(-values, kind="stable")

        for position in order:
            frame_idx = int(grid_frames[position])
            note_idx = int(grid_notes[position])
            energy = remaining[frame_idx, note_idx]
            if energy == 0:
                continue
            if energy <= frame_threshold:
                break
            remaining[frame_idx, note_idx] = 0

            i = frame_idx + 1
            k = 0
            while i < last_frame and k < params.energy_threshold:
                k = _inhibit(remaining, i, note_idx, frame_threshold, k)
                i += 1
            i_end = i - 1 - k

            i = frame_idx - 1
            k = 0
            while i > 0 and k < params.energy_threshold:
                k = _inhibit(remaining, i, note_idx, frame_threshold, k)
                i -= 1
            i_start = i + 1 + k

            if i_end - i_start <= params.min_note_length:
                continue
            amplitude = _column_mean(notes[i_start:i_end, note_idx])
            events.append(
                NoteEvent(
                    start_time=model_frame_to_time(i_start),
                    end_time=model_frame_to_time(i_end),
                    start_frame=i_start,
                    end_frame=i_end,
                    pitch=note_idx + MIDI_OFFSET,
                    amplitude=amplitude,
                )
            )

    sort_events(events)

    if params.pitch_bend != PitchBendMode.NONE:
        add_pitch_bends(events, contours)
        if params.pitch_bend == PitchBendMode.SINGLE:
            drop_overlapping_pitch_bends(events)

    return events