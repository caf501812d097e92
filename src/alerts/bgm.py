"""Looping background music played while a session is running."""

from __future__ import annotations

import logging
import threading
import wave
from pathlib import Path
from typing import Optional

import numpy as np
import sounddevice as sd

from .errors import AlertConfigurationError, AlertError

DEFAULT_BGM_VOLUME = 0.3

_SAMPLE_SCALE = {
    2: (np.int16, 32768.0),
    4: (np.int32, 2147483648.0),
}


def read_wav(path: str | Path) -> tuple[np.ndarray, int]:
    """Decode a PCM WAV file into a `(frames, channels)` float32 array."""
    try:
        with wave.open(str(path), "rb") as wav_file:
            channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            sample_rate_hz = wav_file.getframerate()
            raw = wav_file.readframes(wav_file.getnframes())
    except (OSError, EOFError, wave.Error) as error:
        raise AlertError(f"Failed to read WAV file {path}: {error}") from error

    if sample_width == 1:
        data = (np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif sample_width in _SAMPLE_SCALE:
        dtype, scale = _SAMPLE_SCALE[sample_width]
        data = np.frombuffer(raw, dtype=dtype).astype(np.float32) / scale
    else:
        raise AlertError(f"Unsupported WAV sample width: {sample_width * 8} bit")

    if data.size == 0:
        raise AlertError(f"WAV file contains no audio: {path}")
    return data.reshape(-1, channels), sample_rate_hz


class BackgroundMusicPlayer:
    """Plays a WAV file in an endless loop at a fixed volume.

    `pause` keeps the playback position, `stop` rewinds to the start. A player
    whose file could not be loaded ignores every call.
    """

    def __init__(
        self,
        path: str | Path,
        volume: float = DEFAULT_BGM_VOLUME,
        output_device_index: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not 0.0 <= volume <= 1.0:
            raise AlertConfigurationError(f"BGM volume must be in [0, 1], got: {volume}")
        self._path = Path(path)
        self._volume = volume
        self._output_device_index = output_device_index
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._samples: Optional[np.ndarray] = None
        self._sample_rate_hz = 0
        self._position = 0
        self._stream: Optional[sd.OutputStream] = None

    @property
    def is_loaded(self) -> bool:
        return self._samples is not None

    @property
    def is_playing(self) -> bool:
        return self._stream is not None

    def load(self) -> bool:
        if not self._path.is_file():
            self._logger.warning("BGM file not found: %s", self._path)
            return False
        try:
            samples, sample_rate_hz = read_wav(self._path)
        except AlertError as error:
            self._logger.warning("BGM disabled: %s", error)
            return False

        self._samples = samples * self._volume
        self._sample_rate_hz = sample_rate_hz
        self._position = 0
        self._logger.info(
            "Loaded BGM %s (%0.1fs, %d Hz)",
            self._path.name,
            len(samples) / sample_rate_hz,
            sample_rate_hz,
        )
        return True

    def play(self) -> None:
        with self._lock:
            if self._samples is None or self._stream is not None:
                return
            try:
                stream = sd.OutputStream(
                    samplerate=self._sample_rate_hz,
                    channels=self._samples.shape[1],
                    dtype="float32",
                    callback=self._callback,
                    device=self._output_device_index,
                )
                stream.start()
            except Exception as error:
                raise AlertError(f"BGM playback failed: {error}") from error
            self._stream = stream
        self._logger.debug("BGM playing")

    def pause(self) -> None:
        self._close_stream()

    def stop(self) -> None:
        self._close_stream()
        with self._lock:
            self._position = 0

    def _close_stream(self) -> None:
        with self._lock:
            stream = self._stream
            self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as error:
            raise AlertError(f"Failed to stop BGM: {error}") from error

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            self._logger.warning("Sounddevice status: %s", status)

        samples = self._samples
        if samples is None:
            outdata.fill(0)
            raise sd.CallbackStop()

        total = len(samples)
        filled = 0
        while filled < frames:
            chunk = samples[self._position : self._position + frames - filled]
            count = len(chunk)
            outdata[filled : filled + count] = chunk
            filled += count
            self._position = (self._position + count) % total
