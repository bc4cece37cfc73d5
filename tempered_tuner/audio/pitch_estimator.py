"""Fundamental frequency estimation by time-domain autocorrelation."""

from __future__ import annotations

import math
from typing import ClassVar, Tuple

import numpy as np

from ..core.interfaces import IPitchEstimator
from ..logger import get_logger
from ..note_types import AudioFrame, Detected, NoPitch, PitchEstimate

logger = get_logger(__name__)


class PitchEstimator(IPitchEstimator):
    """Estimate the fundamental of a mono frame.

    The estimator is stateless between calls: each frame is gated on its RMS
    level, trimmed at both ends to the first sample quieter than the trim
    threshold, and autocorrelated. After the first local minimum, the first
    correlation peak that reaches ``peak_tolerance`` of the strongest one is
    taken as the period. With a tolerance below 1 a period that falls between
    two integer lags is not reported an octave low just because its second
    repetition lines up better with the sample grid; a tolerance of 1 takes
    the strongest lag outright.

    Degenerate frames (fewer than two samples, silence, a correlation that
    only ever decreases) yield ``NoPitch``; nothing here raises for frame
    content, since the estimator runs in the capture loop.

    The musically plausible band check (30-2500 Hz by default) is not applied
    here. See :class:`tempered_tuner.services.tuning_pipeline.BandFilter`.
    """

    DEFAULT_SILENCE_THRESHOLD: ClassVar[float] = 0.01  # RMS
    DEFAULT_TRIM_THRESHOLD: ClassVar[float] = 0.2  # Absolute amplitude
    DEFAULT_PEAK_TOLERANCE: ClassVar[float] = 0.9  # Fraction of the strongest peak

    def __init__(
        self,
        silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
        trim_threshold: float = DEFAULT_TRIM_THRESHOLD,
        peak_tolerance: float = DEFAULT_PEAK_TOLERANCE,
    ) -> None:
        """Initialize the estimator.

        Args:
            silence_threshold: Frames with an RMS level below this are treated as silence
            trim_threshold: Amplitude under which a sample counts as near a zero crossing
            peak_tolerance: The first peak at least this fraction of the strongest
                one wins, in (0, 1]

        Raises:
            ValueError: If peak_tolerance is outside (0, 1]
        """
        if not 0.0 < float(peak_tolerance) <= 1.0:
            raise ValueError(f"peak_tolerance must be in (0, 1], got {peak_tolerance!r}")
        self._silence_threshold = float(silence_threshold)
        self._trim_threshold = float(trim_threshold)
        self._peak_tolerance = float(peak_tolerance)
        logger.debug(
            f"Pitch estimator initialized: silence_threshold={self._silence_threshold}, "
            f"trim_threshold={self._trim_threshold}, peak_tolerance={self._peak_tolerance}"
        )

    @property
    def silence_threshold(self) -> float:
        return self._silence_threshold

    @property
    def trim_threshold(self) -> float:
        return self._trim_threshold

    @property
    def peak_tolerance(self) -> float:
        return self._peak_tolerance

    def estimate(self, frame: AudioFrame) -> PitchEstimate:
        """Estimate the fundamental frequency of ``frame``.

        Returns:
            ``Detected(frequency)`` on success, ``NoPitch`` otherwise
        """
        buf = np.asarray(frame.samples, dtype=np.float64)
        size = buf.shape[0]
        if size < 2:
            logger.debug(f"Frame too short for estimation: {size} samples")
            return NoPitch

        rms = math.sqrt(float(np.mean(buf * buf)))
        if rms < self._silence_threshold:
            logger.debug(f"Below silence gate: rms={rms:.5f}")
            return NoPitch

        r1, r2 = self._trim_bounds(buf)
        trimmed = buf[r1:r2]
        n = trimmed.shape[0]
        if n < 2:
            logger.debug(f"Nothing left after trimming: r1={r1}, r2={r2}")
            return NoPitch

        correlation = self._autocorrelate(trimmed)

        # Skip the zero-lag peak: walk down until the correlation stops falling
        rising = np.flatnonzero(correlation[:-1] <= correlation[1:])
        if rising.size == 0:
            logger.debug("Autocorrelation decreases monotonically, no period found")
            return NoPitch
        dip = int(rising[0])

        max_pos = self._first_peak(correlation, dip)
        if max_pos <= 0:
            logger.debug("No positive-lag correlation peak")
            return NoPitch

        frequency = frame.sample_rate / max_pos
        logger.debug(
            f"Estimated {frequency:.2f} Hz (lag={max_pos}, rms={rms:.4f}, "
            f"trim=[{r1}:{r2}])"
        )
        return Detected(frequency)

    def _trim_bounds(self, buf: np.ndarray) -> Tuple[int, int]:
        """Find the first near-zero sample from each end within the outer halves.

        Falls back to ``(0, size - 1)`` for an end with no such sample.
        """
        size = buf.shape[0]
        half = math.ceil(size / 2)
        quiet = np.abs(buf) < self._trim_threshold

        r1 = 0
        head = np.flatnonzero(quiet[:half])
        if head.size:
            r1 = int(head[0])

        r2 = size - 1
        # Offsets 1..half-1 counted back from the end of the frame
        tail_positions = size - np.arange(1, half)
        tail = np.flatnonzero(quiet[tail_positions])
        if tail.size:
            r2 = int(tail_positions[tail[0]])

        return r1, r2

    def _first_peak(self, correlation: np.ndarray, dip: int) -> int:
        """Lag of the first peak after ``dip`` that is close enough to the strongest."""
        tail = correlation[dip:]
        strongest = float(tail.max())
        floor = strongest - (1.0 - self._peak_tolerance) * abs(strongest)

        lag = dip + int(np.flatnonzero(tail >= floor)[0])
        # Climb to the top of the peak the floor was crossed on
        while lag + 1 < correlation.shape[0] and correlation[lag + 1] > correlation[lag]:
            lag += 1
        return lag

    @staticmethod
    def _autocorrelate(buf: np.ndarray) -> np.ndarray:
        """Unnormalized autocorrelation for lags 0..n-1."""
        n = buf.shape[0]
        return np.correlate(buf, buf, mode="full")[n - 1 :]
