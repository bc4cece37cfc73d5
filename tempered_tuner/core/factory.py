"""Factory for creating Tempered Tuner components from configuration."""

from typing import Optional, Dict, Type

from ..audio.pitch_estimator import PitchEstimator
from ..audio.wav_input import WavFileInput
from ..logger import get_logger
from ..music.temperament import TemperamentModel
from ..services.tuning_pipeline import BandFilter, TuningPipeline
from ..services.tuning_service import TuningService
from .config import ConfigManager
from .interfaces import IAudioInput, IPitchEstimator

logger = get_logger(__name__)


def _sound_device_input() -> Type[IAudioInput]:
    # sounddevice loads PortAudio on import, so only pull it in when asked for
    from ..audio.audio_input import SoundDeviceInput

    return SoundDeviceInput


class ComponentFactory:
    """Factory for creating Tempered Tuner components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        self.pitch_estimator_classes: Dict[str, Type[IPitchEstimator]] = {
            "default": PitchEstimator,
        }

    def create_pitch_estimator(
        self, implementation: str = "default", **kwargs
    ) -> IPitchEstimator:
        """Create a pitch estimator.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Overrides for the 'pitch_estimator' configuration

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.pitch_estimator_classes:
            raise ValueError(f"Unknown pitch estimator implementation: {implementation}")

        config = self.config_manager.get_config("pitch_estimator")
        config.update(kwargs)

        instance = self.pitch_estimator_classes[implementation](**config)
        logger.info(f"Created pitch estimator: {implementation}")
        return instance

    def create_band_filter(self, **kwargs) -> BandFilter:
        config = self.config_manager.get_config("band_filter")
        config.update(kwargs)
        return BandFilter(**config)

    def create_temperament(self, name: Optional[str] = None) -> TemperamentModel:
        """Create a temperament model from a built-in name (default from config)."""
        name = name or self.config_manager.get_config("tuning").get("temperament", "equal")
        return TemperamentModel.builtin(name)

    def create_pipeline(
        self,
        a4: Optional[float] = None,
        temperament: Optional[TemperamentModel] = None,
        **estimator_kwargs,
    ) -> TuningPipeline:
        """Create a tuning pipeline wired from configuration."""
        tuning = self.config_manager.get_config("tuning")
        return TuningPipeline(
            estimator=self.create_pitch_estimator(**estimator_kwargs),
            band_filter=self.create_band_filter(),
            temperament=temperament or self.create_temperament(),
            a4=a4 if a4 is not None else tuning.get("a4", 440.0),
        )

    def create_audio_input(
        self, implementation: str = "default", **kwargs
    ) -> IAudioInput:
        """Create an audio input.

        Args:
            implementation: 'default' for the live sounddevice input, 'wav' for a file
            **kwargs: Additional parameters to pass to the constructor; for 'wav'
                this must include ``file_path``

        Raises:
            ValueError: If the implementation is not registered
        """
        config = self.config_manager.get_config("audio_input")

        if implementation == "default":
            config.update(kwargs)
            instance = _sound_device_input()(**config)
        elif implementation == "wav":
            params = {"frames_per_buffer": config.get("frames_per_buffer", 2048)}
            params.update(kwargs)
            instance = WavFileInput(**params)
        else:
            raise ValueError(f"Unknown audio input implementation: {implementation}")

        logger.info(f"Created audio input: {implementation}")
        return instance

    def create_tuning_service(
        self,
        audio_input: Optional[IAudioInput] = None,
        pipeline: Optional[TuningPipeline] = None,
    ) -> TuningService:
        """Create a tuning service, building a live input and pipeline if not provided."""
        instance = TuningService(
            audio_input=audio_input or self.create_audio_input(),
            pipeline=pipeline or self.create_pipeline(),
        )
        logger.info("Created tuning service")
        return instance
