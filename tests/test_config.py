import json

import pytest
import soundfile as sf

from tempered_tuner.audio.pitch_estimator import PitchEstimator
from tempered_tuner.audio.wav_input import WavFileInput
from tempered_tuner.core.config import DEFAULT_CONFIGS, ConfigManager
from tempered_tuner.core.factory import ComponentFactory
from tempered_tuner.note_types import ChromaticNote
from tempered_tuner.services.tuning_service import TuningService

from audio_fixtures import sine


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(tmp_path / "config")


def test_creates_default_files(config_manager):
    for name in DEFAULT_CONFIGS:
        path = config_manager.config_dir / f"{name}.json"
        assert path.exists()
        assert json.loads(path.read_text()) == DEFAULT_CONFIGS[name]


def test_get_config_returns_a_copy(config_manager):
    config = config_manager.get_config("tuning")
    config["a4"] = 1.0
    assert config_manager.get_config("tuning")["a4"] == 440.0
    assert config_manager.get_config("nonexistent") == {}


def test_update_persists(tmp_path):
    manager = ConfigManager(tmp_path)
    assert manager.update_config("tuning", {"a4": 415.0})
    assert not manager.update_config("nonexistent", {"x": 1})

    reloaded = ConfigManager(tmp_path)
    assert reloaded.get_config("tuning")["a4"] == 415.0
    assert reloaded.get_config("tuning")["temperament"] == "equal"


def test_missing_keys_are_filled(tmp_path):
    (tmp_path / "band_filter.json").write_text(json.dumps({"min_frequency": 50.0}))
    manager = ConfigManager(tmp_path)
    assert manager.get_config("band_filter") == {"min_frequency": 50.0, "max_frequency": 2500.0}


def test_unknown_keys_are_dropped(tmp_path):
    (tmp_path / "pitch_estimator.json").write_text(
        json.dumps({"silence_threshold": 0.02, "window": "hann"})
    )
    manager = ConfigManager(tmp_path)
    assert manager.get_config("pitch_estimator") == {
        "silence_threshold": 0.02,
        "trim_threshold": 0.2,
        "peak_tolerance": 0.9,
    }
    assert not manager.update_config("pitch_estimator", {"window": "hann"})


def test_values_take_the_default_type(tmp_path):
    (tmp_path / "audio_input.json").write_text(
        json.dumps({"sample_rate": "48000", "frames_per_buffer": "lots", "device_id": 3})
    )
    config = ConfigManager(tmp_path).get_config("audio_input")
    assert config["sample_rate"] == 48000
    assert config["frames_per_buffer"] == 2048
    assert config["device_id"] == 3


def test_config_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TEMPERED_TUNER_CONFIG_DIR", str(tmp_path / "env"))
    manager = ConfigManager()
    assert manager.config_dir == tmp_path / "env"
    assert (tmp_path / "env" / "tuning.json").exists()


@pytest.mark.parametrize("contents", ["{not json", "[1, 2, 3]"])
def test_unreadable_file_falls_back_to_defaults(tmp_path, contents):
    (tmp_path / "pitch_estimator.json").write_text(contents)
    manager = ConfigManager(tmp_path)
    assert manager.get_config("pitch_estimator") == DEFAULT_CONFIGS["pitch_estimator"]


def test_reset(config_manager):
    config_manager.update_config("tuning", {"temperament": "meantone"})
    assert config_manager.reset_config("tuning")
    assert config_manager.get_config("tuning") == DEFAULT_CONFIGS["tuning"]
    assert not config_manager.reset_config("nonexistent")


class TestComponentFactory:
    def test_pitch_estimator_from_config(self, config_manager):
        config_manager.update_config("pitch_estimator", {"silence_threshold": 0.05})
        factory = ComponentFactory(config_manager)

        estimator = factory.create_pitch_estimator()
        assert isinstance(estimator, PitchEstimator)
        assert estimator.silence_threshold == 0.05
        assert factory.create_pitch_estimator(trim_threshold=0.3).trim_threshold == 0.3

    def test_unknown_implementations(self, config_manager):
        factory = ComponentFactory(config_manager)
        with pytest.raises(ValueError):
            factory.create_pitch_estimator("yin")
        with pytest.raises(ValueError):
            factory.create_audio_input("network")

    def test_band_filter_from_config(self, config_manager):
        config_manager.update_config("band_filter", {"max_frequency": 1000.0})
        band = ComponentFactory(config_manager).create_band_filter()
        assert band.min_frequency == 30.0
        assert band.max_frequency == 1000.0

    def test_pipeline_from_config(self, config_manager):
        config_manager.update_config("tuning", {"a4": 415.0, "temperament": "werckmeister3"})
        pipeline = ComponentFactory(config_manager).create_pipeline()

        settings = pipeline.settings()
        assert settings.a4 == 415.0
        assert settings.temperament[ChromaticNote.A] == -11.7

    def test_pipeline_overrides(self, config_manager):
        pipeline = ComponentFactory(config_manager).create_pipeline(a4=466.0)
        assert pipeline.a4 == 466.0

    def test_wav_input_and_service(self, config_manager, tmp_path):
        path = tmp_path / "tone.wav"
        sf.write(str(path), sine(440.0, length=8192), 44100, subtype="FLOAT")
        factory = ComponentFactory(config_manager)

        source = factory.create_audio_input("wav", file_path=str(path))
        assert isinstance(source, WavFileInput)
        assert source.sample_rate == 44100

        service = factory.create_tuning_service(audio_input=source)
        assert isinstance(service, TuningService)
        block, timestamp = next(source.blocks())
        assert block.shape == (2048, 1)
        assert service.process_block(block, source.sample_rate, timestamp).name == "A4"
