"""Audio input that reads blocks from a sound file with soundfile."""

from __future__ import annotations
import threading
import time
from typing import Callable, Iterator, Optional, Tuple

import numpy as np
import soundfile as sf

from ..core.errors import CaptureError
from ..core.interfaces import IAudioInput
from ..logger import get_logger

logger = get_logger(__name__)


class WavFileInput(IAudioInput):
    """Provides audio blocks by reading from a WAV (or any libsndfile) file."""

    def __init__(
        self,
        file_path: str,
        frames_per_buffer: int = 2048,
        loop: bool = False,
        gain: float = 1.0,
        realtime: bool = True,
    ) -> None:
        """Initialize the file input.

        Args:
            file_path: Path of the sound file
            frames_per_buffer: Frames per block; a short final block is dropped
            loop: Restart from the beginning at end of file (threaded mode only)
            gain: Linear gain applied to every block
            realtime: Sleep between blocks so the threaded stream runs at playback speed

        Raises:
            CaptureError: If the file cannot be opened
        """
        self._file_path = file_path
        self._frames_per_buffer = int(frames_per_buffer)
        self._loop = loop
        self._gain = float(gain)
        self._realtime = realtime
        self._callback: Optional[Callable[[np.ndarray, float], None]] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None

        try:
            with sf.SoundFile(self._file_path) as f:
                self._sample_rate = f.samplerate
                self._channels = f.channels
        except (RuntimeError, OSError) as e:
            raise CaptureError(f"Could not open audio file {file_path}: {e}") from e

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def is_running(self) -> bool:
        return self._running

    def blocks(self) -> Iterator[Tuple[np.ndarray, float]]:
        """Yield ``(block, timestamp)`` pairs once through the file.

        Blocks are (frames x channels) float32 arrays; timestamps are the
        block's start time in seconds from the beginning of the file.
        """
        position = 0
        with sf.SoundFile(self._file_path) as f:
            while True:
                data = f.read(self._frames_per_buffer, dtype="float32", always_2d=True)
                if len(data) < self._frames_per_buffer:
                    break
                if self._gain != 1.0:
                    data *= self._gain
                yield data, position / self._sample_rate
                position += len(data)

    def start(self, callback: Callable[[np.ndarray, float], None]) -> bool:
        """Stream blocks to ``callback`` from a background thread."""
        if self._running:
            logger.warning("File input already running")
            return True

        self._callback = callback
        self._running = True
        self._thread = threading.Thread(target=self._stream_data, daemon=True)
        self._thread.start()
        logger.info(f"Streaming {self._file_path} at {self._sample_rate} Hz")
        return True

    def stop(self) -> None:
        self._running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until a non-looping stream reaches end of file."""
        if self._thread:
            self._thread.join(timeout)

    def _stream_data(self) -> None:
        try:
            while self._running:
                delivered = 0
                for block, timestamp in self.blocks():
                    if not self._running:
                        break
                    if self._callback:
                        self._callback(block, timestamp)
                    delivered += 1
                    if self._realtime:
                        time.sleep(len(block) / self._sample_rate)
                # A file shorter than one block would spin forever when looping
                if not self._loop or delivered == 0:
                    break
        except (RuntimeError, OSError) as e:
            logger.error(f"Error streaming {self._file_path}: {e}")
        finally:
            self._running = False
