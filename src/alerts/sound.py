"""Sounddevice-backed alert tone played when a phase ends."""

import logging
from typing import Optional

import numpy as np
import sounddevice as sd

from .errors import AlertConfigurationError, AlertError

DEFAULT_SAMPLE_RATE_HZ = 44100


def synthesize_chime(
    *,
    frequency_hz: float,
    duration_seconds: float,
    sample_rate_hz: int,
    volume: float,
    repeats: int = 2,
    gap_seconds: float = 0.08,
) -> np.ndarray:
    """Build a mono float32 chime of `repeats` short sine tones."""
    tone_samples = int(sample_rate_hz * duration_seconds)
    if tone_samples <= 0:
        raise AlertConfigurationError("Alert tone duration is too short")

    t = np.arange(tone_samples, dtype=np.float64) / sample_rate_hz
    tone = np.sin(2.0 * np.pi * frequency_hz * t)

    # 10 ms linear fade avoids clicks at tone edges.
    fade = min(tone_samples // 2, int(sample_rate_hz * 0.01))
    if fade > 0:
        envelope = np.ones(tone_samples)
        envelope[:fade] = np.linspace(0.0, 1.0, fade)
        envelope[-fade:] = np.linspace(1.0, 0.0, fade)
        tone = tone * envelope

    tone = tone * volume
    gap = np.zeros(int(sample_rate_hz * gap_seconds))
    parts: list[np.ndarray] = []
    for index in range(max(1, repeats)):
        if index:
            parts.append(gap)
        parts.append(tone)
    return np.concatenate(parts).astype(np.float32)


class SoundDeviceAlertSink:
    """Plays a synthesized chime through a selected sounddevice output."""
    def __init__(
        self,
        output_device_index: Optional[int] = None,
        frequency_hz: float = 880.0,
        duration_seconds: float = 0.25,
        volume: float = 0.5,
        sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
        logger: Optional[logging.Logger] = None,
    ):
        if not 0.0 <= volume <= 1.0:
            raise AlertConfigurationError(f"Alert volume must be in [0, 1], got: {volume}")
        self._output_device_index = output_device_index
        self._sample_rate_hz = sample_rate_hz
        self._logger = logger or logging.getLogger(__name__)
        self._chime = synthesize_chime(
            frequency_hz=frequency_hz,
            duration_seconds=duration_seconds,
            sample_rate_hz=sample_rate_hz,
            volume=volume,
        )

    def play_alert(self) -> None:
        self._logger.debug(
            "Playing %d alert samples at %d Hz",
            len(self._chime),
            self._sample_rate_hz,
        )
        try:
            sd.play(
                self._chime,
                samplerate=self._sample_rate_hz,
                device=self._output_device_index,
                blocking=False,
            )
        except Exception as error:
            raise AlertError(f"Alert playback failed: {error}") from error

    def vibrate(self) -> None:
        # Desktop outputs have no haptic actuator.
        self._logger.debug("Vibration requested; no haptic output on this host")
