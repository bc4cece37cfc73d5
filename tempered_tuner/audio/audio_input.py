"""Live microphone capture using the sounddevice library."""

from __future__ import annotations
import time
from typing import Any, Callable, ClassVar, Dict, List, Optional

import numpy as np
import sounddevice as sd

from ..core.errors import CaptureError
from ..core.interfaces import IAudioInput
from ..logger import get_logger

logger = get_logger(__name__)


def list_input_devices() -> List[Dict[str, Any]]:
    """Describe every device that can record.

    Returns:
        One dict per input device with its id, name, channel count and
        default sample rate
    """
    try:
        devices = sd.query_devices()
    except Exception as e:
        raise CaptureError(f"Could not query audio devices: {e}") from e

    return [
        {
            "id": device_id,
            "name": device["name"],
            "channels": device["max_input_channels"],
            "default_samplerate": device["default_samplerate"],
        }
        for device_id, device in enumerate(devices)
        if device["max_input_channels"] > 0
    ]


class SoundDeviceInput(IAudioInput):
    """Audio input handler using sounddevice.

    Blocks are delivered from PortAudio's callback thread, so the consumer's
    callback runs on that thread.
    """

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    FRAMES_PER_BUFFER: ClassVar[int] = 2048  # Frames handed to the estimator per block
    CHANNELS: ClassVar[int] = 1  # Mono audio
    FALLBACK_RATES: ClassVar[List[int]] = [48000, 44100, 22050, 16000, 8000]

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frames_per_buffer: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Preferred sample rate in Hz, or None for default (44100)
            frames_per_buffer: Block size in frames, or None for default (2048)
            channels: Number of audio channels, or None for default (1)
        """
        self._device_id = device_id
        self._sample_rate = int(sample_rate or self.SAMPLE_RATE)
        self._frames_per_buffer = int(frames_per_buffer or self.FRAMES_PER_BUFFER)
        self._channels = int(channels or self.CHANNELS)

        self._stream: Optional[sd.InputStream] = None
        self._callback: Optional[Callable[[np.ndarray, float], None]] = None
        self._running = False

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def is_running(self) -> bool:
        return self._running

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info: Any,
        status: sd.CallbackFlags,
    ) -> None:
        """Forward one block from the input stream.

        Note:
            This is called from the audio thread; the buffer is reused by
            PortAudio, so a copy is handed on.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        if self._callback:
            self._callback(indata.copy(), time.time())

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Open the input stream, trying fallback sample rates if needed.

        Args:
            callback: Function to call with each block (frames x channels) and a timestamp

        Raises:
            CaptureError: If no sample rate could be opened on the device
        """
        if self._running:
            logger.warning("Audio input already running")
            return True

        self._callback = callback

        rates_to_try = [rate for rate in self.FALLBACK_RATES if rate != self._sample_rate]
        rates_to_try.insert(0, self._sample_rate)

        last_error: Optional[Exception] = None
        for rate in rates_to_try:
            try:
                logger.info(f"Trying to start audio input with sample rate: {rate} Hz")
                self._stream = sd.InputStream(
                    device=self._device_id,
                    samplerate=rate,
                    blocksize=self._frames_per_buffer,
                    channels=self._channels,
                    dtype="float32",
                    callback=self._audio_callback,
                )
                self._stream.start()
            except Exception as e:
                last_error = e
                logger.warning(f"Failed to start audio input with sample rate {rate} Hz: {e}")
                self._close_stream()
                continue

            self._sample_rate = rate
            self._running = True
            logger.info(f"Audio input started with sample rate {rate} Hz")
            return True

        self._callback = None
        raise CaptureError(f"Could not open audio input device: {last_error}")

    def _close_stream(self) -> None:
        if self._stream is not None:
            try:
                self._stream.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing stream: {e}")
            self._stream = None

    def stop(self) -> None:
        """Stop capturing audio."""
        if not self._running:
            return

        if self._stream:
            try:
                self._stream.stop()
            except Exception as e:
                logger.error(f"Error stopping audio input: {e}")
            self._close_stream()
        self._running = False
        logger.info("Audio input stopped")
