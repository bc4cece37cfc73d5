"""Tuning service that connects an audio input to the tuning pipeline."""

from __future__ import annotations
import threading
from typing import Any, Callable, Mapping, Optional, Tuple

import numpy as np

from ..audio.framer import SignalFramer
from ..core.events import TuningEvents
from ..core.interfaces import IAudioInput, ITuningService
from ..logger import get_logger
from ..music.temperament import NoteKey
from ..note_types import NO_READING, Reading, TuningResult
from ..presets import Preset
from .tuning_pipeline import TuningPipeline

logger = get_logger(__name__)


class TuningService(ITuningService):
    """Facade over an audio input and a :class:`TuningPipeline`.

    Each captured block is framed, run through the pipeline and published:
    the reading replaces :attr:`latest` and is emitted to listeners
    registered on :attr:`events`. Frames that fail to process are logged and
    emitted as errors; they never stop the capture loop.
    """

    def __init__(
        self,
        audio_input: Optional[IAudioInput] = None,
        pipeline: Optional[TuningPipeline] = None,
    ) -> None:
        """Initialize the tuning service.

        Args:
            audio_input: Capture source; may be None when blocks are fed
                through :meth:`process_block` instead
            pipeline: Tuning pipeline, or None to create a default one
        """
        self._audio_input = audio_input
        self._pipeline = pipeline or TuningPipeline()
        self._events = TuningEvents()
        self._framer: Optional[SignalFramer] = None
        self._start_listeners: Optional[Tuple[Callable, Callable]] = None

        self._publish_lock = threading.Lock()
        self._latest: Reading = NO_READING
        self._last_result: Optional[TuningResult] = None
        self._running = False

    @property
    def pipeline(self) -> TuningPipeline:
        return self._pipeline

    @property
    def events(self) -> TuningEvents:
        return self._events

    @property
    def latest(self) -> Reading:
        """Reading for the most recent frame (possibly NO_READING)."""
        with self._publish_lock:
            return self._latest

    @property
    def last_result(self) -> Optional[TuningResult]:
        """Most recent surfaced reading, held across frames with nothing to show."""
        with self._publish_lock:
            return self._last_result

    def start(self, callback: Optional[Callable[[Reading], None]] = None) -> bool:
        """Start capture.

        Args:
            callback: Optional function called with every frame's reading
                (a :class:`TuningResult` or NO_READING)

        Raises:
            ValueError: If the service was created without an audio input
            CaptureError: If the audio input cannot be started
        """
        if self._running:
            logger.warning("Tuning service already running")
            return True
        if self._audio_input is None:
            raise ValueError("No audio input configured; use process_block() instead")

        if callback is not None:

            def on_silence(_timestamp: float) -> None:
                callback(NO_READING)

            self._events.on_reading(callback)
            self._events.on_no_reading(on_silence)
            self._start_listeners = (callback, on_silence)

        try:
            self._audio_input.start(self._on_audio)
        except Exception:
            self._remove_start_listeners()
            raise
        self._running = True
        logger.info(f"Tuning started at {self._audio_input.sample_rate} Hz")
        return True

    def stop(self) -> None:
        """Stop capture. Frames already in flight finish normally."""
        if not self._running:
            return
        if self._audio_input is not None:
            self._audio_input.stop()
        self._running = False
        self._remove_start_listeners()
        logger.info("Tuning stopped")

    def _remove_start_listeners(self) -> None:
        """Detach the listeners :meth:`start` registered for its callback."""
        if self._start_listeners is None:
            return
        on_reading, on_silence = self._start_listeners
        self._events.off_reading(on_reading)
        self._events.off_no_reading(on_silence)
        self._start_listeners = None

    def is_running(self) -> bool:
        return self._running

    def _on_audio(self, block: np.ndarray, timestamp: float) -> None:
        """Capture-thread callback; the input's rate may differ from the one requested."""
        framer = self._framer
        if (
            framer is None
            or framer.sample_rate != self._audio_input.sample_rate
            or framer.channels != self._audio_input.channels
        ):
            framer = SignalFramer(
                self._audio_input.sample_rate, channels=self._audio_input.channels
            )
            self._framer = framer

        try:
            self._publish(self._pipeline.process(framer.frame(block), timestamp), timestamp)
        except Exception as e:
            logger.error(f"Error processing audio block: {e}", exc_info=True)
            self._events.emit_error(e)

    def process_block(
        self, block: Any, sample_rate: float, timestamp: float = 0.0, channels: int = 1
    ) -> Reading:
        """Frame and process one block synchronously, then publish the reading.

        Raises:
            InputError: If the block or sample rate is malformed
        """
        frame = SignalFramer(sample_rate, channels=channels).frame(block)
        reading = self._pipeline.process(frame, timestamp)
        self._publish(reading, timestamp)
        return reading

    def _publish(self, reading: Reading, timestamp: float) -> None:
        with self._publish_lock:
            self._latest = reading
            if reading:
                self._last_result = reading
        if reading:
            self._events.emit_reading(reading)
        else:
            self._events.emit_no_reading(timestamp)

    # Settings pass through to the pipeline

    def set_a4(self, a4: float) -> None:
        self._pipeline.set_a4(a4)

    def set_offset(self, note: NoteKey, offset: float) -> None:
        self._pipeline.set_offset(note, offset)

    def set_temperament(self, mapping: Mapping[Any, Any]) -> None:
        self._pipeline.set_temperament(mapping)

    def load_preset(self, preset: Preset) -> None:
        self._pipeline.load_preset(preset)

    def current_preset(self, name: str) -> Preset:
        return self._pipeline.current_preset(name)
