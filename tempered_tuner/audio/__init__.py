"""Audio framing, pitch estimation and capture sources.

The live sounddevice input lives in :mod:`tempered_tuner.audio.audio_input`
and is not imported here, since importing sounddevice requires PortAudio.
"""

from .framer import SignalFramer, make_frame
from .pitch_estimator import PitchEstimator

__all__ = ["SignalFramer", "make_frame", "PitchEstimator"]
