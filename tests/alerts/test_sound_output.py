import sys
import tempfile
import types
import unittest
import wave
from pathlib import Path
from unittest.mock import patch

import numpy as np

# Import alerts modules without executing src/alerts/__init__.py.
_ALERTS_DIR = Path(__file__).resolve().parents[2] / "src" / "alerts"
if "alerts" not in sys.modules:
    _pkg = types.ModuleType("alerts")
    _pkg.__path__ = [str(_ALERTS_DIR)]  # type: ignore[attr-defined]
    sys.modules["alerts"] = _pkg

_fake_sounddevice = types.ModuleType("sounddevice")
_fake_sounddevice.play = lambda *args, **kwargs: None
_fake_sounddevice.OutputStream = object
_fake_sounddevice.CallbackStop = type("CallbackStop", (Exception,), {})

from alerts.errors import AlertConfigurationError, AlertError

with patch.dict(sys.modules, {"sounddevice": _fake_sounddevice}):
    from alerts import bgm as bgm_module
    from alerts import sound as sound_module


def _write_wav(path: Path, samples: np.ndarray, *, channels: int = 1, rate: int = 8000) -> None:
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(2)
        wav_file.setframerate(rate)
        wav_file.writeframes(samples.astype("<i2").tobytes())


class SynthesizeChimeTests(unittest.TestCase):
    def test_chime_has_two_tones_and_gap(self) -> None:
        chime = sound_module.synthesize_chime(
            frequency_hz=440.0,
            duration_seconds=0.1,
            sample_rate_hz=1000,
            volume=0.5,
            repeats=2,
            gap_seconds=0.05,
        )

        self.assertEqual(np.float32, chime.dtype)
        self.assertEqual(100 + 50 + 100, len(chime))
        self.assertLessEqual(float(np.max(np.abs(chime))), 0.5 + 1e-6)
        self.assertEqual(0.0, float(chime[0]))

    def test_rejects_zero_length_tone(self) -> None:
        with self.assertRaises(AlertConfigurationError):
            sound_module.synthesize_chime(
                frequency_hz=440.0,
                duration_seconds=0.0,
                sample_rate_hz=1000,
                volume=0.5,
            )


class SoundDeviceAlertSinkTests(unittest.TestCase):
    def test_play_alert_starts_non_blocking_playback(self) -> None:
        sink = sound_module.SoundDeviceAlertSink(output_device_index=3, sample_rate_hz=8000)

        with patch.object(sound_module, "sd") as sd:
            sink.play_alert()

        sd.play.assert_called_once()
        kwargs = sd.play.call_args.kwargs
        self.assertEqual(8000, kwargs["samplerate"])
        self.assertEqual(3, kwargs["device"])
        self.assertFalse(kwargs["blocking"])

    def test_playback_errors_become_alert_errors(self) -> None:
        sink = sound_module.SoundDeviceAlertSink(sample_rate_hz=8000)

        with patch.object(sound_module, "sd") as sd:
            sd.play.side_effect = RuntimeError("device busy")
            with self.assertRaises(AlertError):
                sink.play_alert()

    def test_rejects_volume_out_of_range(self) -> None:
        with self.assertRaises(AlertConfigurationError):
            sound_module.SoundDeviceAlertSink(volume=1.5)

    def test_vibrate_is_a_quiet_no_op(self) -> None:
        sink = sound_module.SoundDeviceAlertSink(sample_rate_hz=8000)

        with patch.object(sound_module, "sd") as sd:
            sink.vibrate()

        sd.play.assert_not_called()


class BackgroundMusicPlayerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        self.wav_path = Path(self._temp_dir.name) / "bgm.wav"

    def test_read_wav_scales_to_unit_range(self) -> None:
        _write_wav(self.wav_path, np.array([0, 16384, -32768, 32767]), rate=8000)

        samples, rate = bgm_module.read_wav(self.wav_path)

        self.assertEqual(8000, rate)
        self.assertEqual((4, 1), samples.shape)
        self.assertAlmostEqual(0.5, float(samples[1, 0]))
        self.assertAlmostEqual(-1.0, float(samples[2, 0]))

    def test_missing_file_disables_player_with_warning(self) -> None:
        player = bgm_module.BackgroundMusicPlayer(self.wav_path)

        with self.assertLogs(level="WARNING"):
            loaded = player.load()

        self.assertFalse(loaded)
        self.assertFalse(player.is_loaded)
        with patch.object(bgm_module, "sd") as sd:
            player.play()
        sd.OutputStream.assert_not_called()

    def test_play_opens_one_stream_and_pause_closes_it(self) -> None:
        _write_wav(self.wav_path, np.zeros(16), channels=2)
        player = bgm_module.BackgroundMusicPlayer(self.wav_path, volume=0.3)
        self.assertTrue(player.load())

        with patch.object(bgm_module, "sd") as sd:
            player.play()
            player.play()
            self.assertTrue(player.is_playing)
            player.pause()

        sd.OutputStream.assert_called_once()
        self.assertEqual(2, sd.OutputStream.call_args.kwargs["channels"])
        stream = sd.OutputStream.return_value
        stream.start.assert_called_once()
        stream.stop.assert_called_once()
        stream.close.assert_called_once()
        self.assertFalse(player.is_playing)

    def test_callback_loops_and_stop_rewinds(self) -> None:
        _write_wav(self.wav_path, np.array([8192, 16384, 32767]))
        player = bgm_module.BackgroundMusicPlayer(self.wav_path, volume=1.0)
        player.load()
        outdata = np.zeros((5, 1), dtype=np.float32)

        player._callback(outdata, 5, None, None)

        expected = np.array([0.25, 0.5, 32767 / 32768, 0.25, 0.5], dtype=np.float32)
        np.testing.assert_allclose(expected, outdata[:, 0], rtol=1e-6)
        self.assertEqual(2, player._position)

        player.stop()
        self.assertEqual(0, player._position)

    def test_volume_scales_samples(self) -> None:
        _write_wav(self.wav_path, np.array([16384]))
        player = bgm_module.BackgroundMusicPlayer(self.wav_path, volume=0.3)
        player.load()
        outdata = np.zeros((1, 1), dtype=np.float32)

        player._callback(outdata, 1, None, None)

        self.assertAlmostEqual(0.15, float(outdata[0, 0]), places=6)

    def test_stream_errors_become_alert_errors(self) -> None:
        _write_wav(self.wav_path, np.zeros(4))
        player = bgm_module.BackgroundMusicPlayer(self.wav_path)
        player.load()

        with patch.object(bgm_module, "sd") as sd:
            sd.OutputStream.side_effect = RuntimeError("no output device")
            with self.assertRaises(AlertError):
                player.play()

        self.assertFalse(player.is_playing)


if __name__ == "__main__":
    unittest.main()
