"""Synthetic signals shared by the tests."""

import numpy as np


def sine(frequency, sample_rate=44100, length=2048, amplitude=0.5, phase=0.0):
    """A float32 sine wave of ``length`` samples."""
    t = np.arange(length) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t + phase)).astype(np.float32)
