"""Anti-aliased resampling of audio to the model sample rate."""

from __future__ import annotations

import math

import numpy as np
from scipy import signal

from .constants import BASIC_PITCH_SAMPLE_RATE

_NUM_POINTS = 5
_NODES = np.arange(_NUM_POINTS) - 2


def _lagrange_weights(offsets: np.ndarray) -> np.ndarray:
    """Lagrange basis weights on nodes -2..2, one row per offset."""
    weights = np.ones((len(offsets), _NUM_POINTS))
    for k in range(_NUM_POINTS):
        for j in range(_NUM_POINTS):
            if j != k:
                weights[:, k] *= (_NODES[j] - offsets) / (j - k)
    return weights


class LagrangeInterpolator:
    """Streaming five-point Lagrange interpolator with two samples of latency."""

    BASE_LATENCY = 2

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._history = np.zeros(_NUM_POINTS)
        self._position = 1.0

    def process(self, speed_ratio: float, samples, num_out: int) -> tuple[np.ndarray, int]:
        """Produce ``num_out`` samples, reading input at ``speed_ratio``.

        Returns the output and the number of input samples consumed.
        """
        if speed_ratio <= 0:
            raise ValueError(f"speed ratio must be positive, got {speed_ratio}")
        if num_out < 0:
            raise ValueError(f"number of output samples must not be negative, got {num_out}")
        source = np.asarray(samples, dtype=np.float64).ravel()
        if num_out == 0:
            return np.zeros(0), 0

        positions = self._position + speed_ratio * np.arange(num_out)
        pushes = np.maximum(np.floor(positions), 0).astype(np.int64)
        used = int(pushes[-1])
        if used > len(source):
            raise ValueError(
                f"{num_out} output samples need {used} input samples, got {len(source)}"
            )

        offsets = positions - pushes
        extended = np.concatenate([self._history, source[:used]])
        windows = extended[pushes[:, np.newaxis] + np.arange(_NUM_POINTS)]
        output = np.sum(windows * _lagrange_weights(offsets), axis=1)

        self._history = extended[used:used + _NUM_POINTS].copy()
        self._position = float(offsets[-1] + speed_ratio)
        return output, used


class DownSampler:
    """Low-pass filters and resamples mono audio to the target sample rate."""

    def __init__(self, target_sample_rate: float = BASIC_PITCH_SAMPLE_RATE) -> None:
        self.target_sample_rate = float(target_sample_rate)
        self.source_sample_rate: float | None = None
        self.speed_ratio: float | None = None
        self._capacity = 0
        self._sos: np.ndarray | None = None
        self._filter_state: np.ndarray | None = None
        self._interpolator = LagrangeInterpolator()
        self._pending = np.zeros(LagrangeInterpolator.BASE_LATENCY)

    def prepare_to_play(self, sample_rate: float, max_block_size: int) -> None:
        """Configure for a source rate and a largest block size, then reset."""
        if sample_rate <= 0:
            raise ValueError(f"sample rate must be positive, got {sample_rate}")
        if max_block_size < 0:
            raise ValueError(f"block size must not be negative, got {max_block_size}")

        self.source_sample_rate = float(sample_rate)
        self.speed_ratio = self.source_sample_rate / self.target_sample_rate
        self._capacity = int(max_block_size) + 2 * LagrangeInterpolator.BASE_LATENCY + 1

        cutoff = self.target_sample_rate / 2.0
        if cutoff < self.source_sample_rate / 2.0:
            self._sos = signal.butter(
                4, cutoff, btype="low", fs=self.source_sample_rate, output="sos"
            )
        else:
            # No content above the target Nyquist frequency to remove.
            self._sos = None

        self.reset()

    def reset(self) -> None:
        self._pending = np.zeros(LagrangeInterpolator.BASE_LATENCY)
        self._interpolator.reset()
        self._filter_state = (
            np.zeros((self._sos.shape[0], 2)) if self._sos is not None else None
        )

    def _require_prepared(self) -> None:
        if self.speed_ratio is None:
            raise RuntimeError("prepare_to_play must be called first")

    def process_block(self, samples) -> np.ndarray:
        """Filter and resample one block; return the samples produced."""
        self._require_prepared()
        block = np.asarray(samples, dtype=np.float64).ravel()
        if len(self._pending) + len(block) > self._capacity:
            raise ValueError(
                f"block of {len(block)} samples exceeds the prepared block size"
            )

        if self._sos is not None and len(block):
            block, self._filter_state = signal.sosfilt(
                self._sos, block, zi=self._filter_state
            )

        pending = np.concatenate([self._pending, block])
        num_out = math.floor(len(pending) / self.speed_ratio)
        output, used = self._interpolator.process(self.speed_ratio, pending, num_out)
        self._pending = pending[used:]
        return output

    def num_out_samples_on_next_process_block(self, num_samples: int) -> int:
        """Upper bound on the samples the next block of ``num_samples`` yields."""
        self._require_prepared()
        return math.floor(len(self._pending) + num_samples / self.speed_ratio)