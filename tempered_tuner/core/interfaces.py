"""Defines the core interfaces for the Tempered Tuner package."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, List, Optional

import numpy as np

if TYPE_CHECKING:
    from ..note_types import AudioFrame, PitchEstimate, Reading
    from ..presets import Preset


class IAudioInput(ABC):
    """Interface for audio capture sources."""

    @abstractmethod
    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Start capturing audio, calling ``callback(block, timestamp)`` per block."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing audio."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if audio is running."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> float:
        """The sample rate of the captured blocks."""
        pass

    @property
    def channels(self) -> int:
        """The number of interleaved channels in each block."""
        return 1


class IPitchEstimator(ABC):
    """Interface for fundamental frequency estimators."""

    @abstractmethod
    def estimate(self, frame: AudioFrame) -> PitchEstimate:
        """Estimate the fundamental frequency of one frame."""
        pass


class ITuningService(ABC):
    """Interface for the service that drives capture through the pipeline."""

    @abstractmethod
    def start(self, callback: Optional[Callable[[Reading], None]] = None) -> bool:
        """Start capture and report a reading per frame."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the service."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the service is running."""
        pass


class IPresetStore(ABC):
    """Storage for named (temperament, reference pitch) presets.

    Implementations own persistence. A save under an existing name replaces
    the stored preset.
    """

    @abstractmethod
    def save(self, preset: Preset) -> None:
        """Store ``preset`` under its name."""
        pass

    @abstractmethod
    def load(self, name: str) -> Optional[Preset]:
        """Return the preset stored under ``name``, or None."""
        pass

    @abstractmethod
    def list_names(self) -> List[str]:
        """Names of all stored presets, in insertion order."""
        pass

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove a preset; returns True if one was removed."""
        pass
