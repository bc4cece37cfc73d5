"""Turn raw capture blocks into validated, immutable audio frames."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Union

import numpy as np

from ..core.errors import InputError
from ..logger import get_logger
from ..note_types import AudioFrame

logger = get_logger(__name__)

Block = Union[np.ndarray, Sequence[float], bytes, bytearray, memoryview]


def _validate_sample_rate(sample_rate: float) -> float:
    try:
        rate = float(sample_rate)
    except (TypeError, ValueError):
        raise InputError(f"Sample rate must be a number, got {sample_rate!r}")
    if not math.isfinite(rate) or rate <= 0:
        raise InputError(f"Sample rate must be positive and finite, got {sample_rate!r}")
    return rate


def make_frame(samples: Block, sample_rate: float, channels: int = 1) -> AudioFrame:
    """Validate a block of samples and wrap it in an :class:`AudioFrame`.

    Args:
        samples: Sample values as a numpy array, a sequence of floats, or raw
            native-endian float32 bytes. Two-dimensional input is treated as
            (frames, channels).
        sample_rate: Capture rate in Hz
        channels: Channel count used to de-interleave flat input

    Returns:
        A frame holding a private, read-only mono float32 copy of the samples

    Raises:
        InputError: If the block is empty, contains non-finite values, or the
            sample rate is not a positive finite number.
    """
    rate = _validate_sample_rate(sample_rate)

    if isinstance(samples, (bytes, bytearray, memoryview)):
        data = np.frombuffer(samples, dtype=np.float32)
    else:
        data = np.asarray(samples, dtype=np.float32)

    # De-interleave flat multi-channel input
    if data.ndim == 1 and channels > 1 and data.size > 0:
        if data.size % channels:
            raise InputError(
                f"Block of {data.size} samples does not divide into {channels} channels"
            )
        data = data.reshape(-1, channels)

    if data.ndim == 2:
        # Down-mix to mono
        data = data.mean(axis=1, dtype=np.float32) if data.shape[1] > 1 else data[:, 0]
    elif data.ndim != 1:
        raise InputError(f"Expected a 1-D or 2-D block, got shape {data.shape}")

    if data.size == 0:
        raise InputError("Audio block is empty")
    if not np.all(np.isfinite(data)):
        raise InputError("Audio block contains non-finite samples")

    frame_samples = np.array(data, dtype=np.float32, copy=True)
    frame_samples.setflags(write=False)
    return AudioFrame(samples=frame_samples, sample_rate=rate)


class SignalFramer:
    """Frames blocks from one capture source with a fixed rate and layout."""

    def __init__(
        self,
        sample_rate: float,
        channels: int = 1,
        frame_size: Optional[int] = None,
    ) -> None:
        """Initialize the framer.

        Args:
            sample_rate: Capture rate in Hz shared by every block
            channels: Interleaved channel count of incoming blocks
            frame_size: If set, blocks must contain exactly this many frames
        """
        self._sample_rate = _validate_sample_rate(sample_rate)
        if int(channels) < 1:
            raise InputError(f"Channel count must be at least 1, got {channels!r}")
        self._channels = int(channels)
        self._frame_size = int(frame_size) if frame_size is not None else None

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def frame(self, block: Block) -> AudioFrame:
        """Build a frame from one capture block."""
        frame = make_frame(block, self._sample_rate, self._channels)
        if self._frame_size is not None and len(frame) != self._frame_size:
            raise InputError(
                f"Expected {self._frame_size} frames per block, got {len(frame)}"
            )
        logger.debug(f"Framed {len(frame)} samples at {self._sample_rate:.0f} Hz")
        return frame
