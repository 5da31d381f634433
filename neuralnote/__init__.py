"""Note extraction from posteriorgrams, key and rhythm post-processing, resampling and MIDI file export."""

__version__ = "0.1.0"