"""Model and MIDI constants shared across the transcription pipeline."""

NUM_HARMONICS = 8
NUM_FREQ_IN = 264
NUM_FREQ_OUT = 88
BASIC_PITCH_SAMPLE_RATE = 22050.0

MIDI_OFFSET = 21
FFT_HOP = 256
AUDIO_SAMPLE_RATE = 22050
MAX_NOTE_IDX = 87
# Duration in seconds of the training examples.
AUDIO_WINDOW_LENGTH = 2

# Lowest key on a piano.
ANNOTATIONS_BASE_FREQUENCY = 27.5
CONTOURS_BINS_PER_SEMITONE = 3

MIN_MIDI_NOTE = 21
MAX_MIDI_NOTE = 108


def safe_divide(a: int, b: int) -> int:
    """Divide ``a`` by ``b`` exactly, truncating toward zero.

    Raises ``ValueError`` if the division leaves a remainder and
    ``ZeroDivisionError`` if ``b`` is zero.
    """
    if b == 0:
        raise ZeroDivisionError("safe_divide: division by zero")
    quotient, remainder = divmod(abs(a), abs(b))
    if remainder != 0:
        raise ValueError(f"safe_divide: {a} is not a multiple of {b}")
    return quotient if (a < 0) == (b < 0) else -quotient