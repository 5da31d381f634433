# neuralnote

A library for turning the posteriorgrams of a pitch-detection model into
MIDI note events. It cleans those events up by pitch range, key and rhythm
grid, and writes them to a standard MIDI file.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `neuralnote.notes`: `convert(notes_pg, onsets_pg, contours_pg, params)`
  returns a sorted list of `NoteEvent`s. Its three inputs are the note,
  onset and contour posteriorgrams. `ConvertParams` holds the settings:
  onset and frame thresholds, minimum note length, frequency limits,
  whether to infer onsets, the melodia trick, the energy threshold and the
  `PitchBendMode` (`NONE`, `SINGLE`, `MULTI`). The module also has these
  helpers: `sort_events`, `drop_overlapping_pitch_bends`,
  `merge_overlapping_notes_with_same_pitch`, `add_pitch_bends`,
  `inferred_onsets`, `model_frame_to_time` and `hz_to_midi`.
- `neuralnote.note_utils`: the enums `RootNote`, `ScaleType` and `SnapMode`,
  and `midi_note_to_str`, which turns 60 into `"C4"`.
- `neuralnote.rhythm_utils`: `TimeDivision`, a set of grid sizes from `1/1`
  down to `1/64`. Each one has `label()` and `fraction()`.
- `neuralnote.note_options`: `NoteOptions` drops notes outside a MIDI range.
  In a major or minor key it then either removes out-of-key notes or moves
  them by one semitone. The note moves up when the sum of its pitch bends
  is zero or more, and down otherwise.
- `neuralnote.rhythm_options`: `RhythmOptions` quantizes note start times to
  a `TimeDivision` grid and keeps each note's duration. The amount of
  quantization is set by a force from 0 to 1. Quantizing needs the host
  position at the start of recording, given as a `PositionInfo` with bpm,
  `TimeSignature`, ppq position and last bar start, with playback running.
  If that position is missing, or the audio came from a dropped file,
  `quantize` returns copies of the events unchanged. `quantize_time` is the
  single-time function that `quantize` uses.
- `neuralnote.downsampler`: `DownSampler` resamples mono audio blocks to
  22050 Hz using a `LagrangeInterpolator`. When the source rate is above
  44100 Hz it first applies a 4th-order Butterworth lowpass. Call
  `prepare_to_play` before `process_block`.
- `neuralnote.midi_file_writer`: `build_midi_file` returns a `mido.MidiFile`
  with tempo, time signature, note-on/off and, in `PitchBendMode.SINGLE`,
  pitch-wheel events. The file uses 960 ticks per quarter note and a ±4
  semitone bend range. `write_midi_file` builds the file, saves it and
  returns it. If the host was playing at the same tempo when recording
  started, the notes are shifted so that the file begins at the previous
  bar.
- `neuralnote.session`: `TranscriptionSession` holds user `Parameters` and a
  `State`.
  - `set_transcription` stores raw events and runs note options, rhythm
    quantization, pitch-bend dropping and same-pitch merging.
  - `update_post_processing` runs that processing again after the
    parameters change.
  - `tempo_str` and `time_signature_str` give display text.

## Example

```python
from neuralnote.notes import ConvertParams, PitchBendMode, convert
from neuralnote.note_options import NoteOptions
from neuralnote.note_utils import RootNote, ScaleType, SnapMode
from neuralnote.midi_file_writer import write_midi_file

events = convert(notes_pg, onsets_pg, contours_pg, ConvertParams())

options = NoteOptions()
options.set_parameters(RootNote.C, ScaleType.MAJOR, SnapMode.ADJUST, 21, 108)
events = options.process(events)

write_midi_file(events, "transcription.mid", None, 120.0, PitchBendMode.NONE)
```

Each posteriorgram is a two-dimensional array with one row per frame. The
note and onset posteriorgrams have 88 columns, and the contour
posteriorgram has 264.

## What this package does not do

- It does not compute posteriorgrams. There is no feature extraction or
  neural network inference here, so you supply the note, onset and contour
  arrays yourself.
- It does not record or play audio, and it does not decode audio files.
  `DownSampler` works on sample arrays you already hold.
- It has no graphical interface and no command-line program. It is a
  library to call from Python.