"""Public exports for phase completion alert outputs."""

from .bgm import BackgroundMusicPlayer
from .dispatcher import PhaseAlertDispatcher
from .errors import AlertConfigurationError, AlertError
from .notification import DesktopNotificationSink, LoggingNotificationSink
from .sound import SoundDeviceAlertSink

__all__ = [
    "AlertConfigurationError",
    "AlertError",
    "BackgroundMusicPlayer",
    "DesktopNotificationSink",
    "LoggingNotificationSink",
    "PhaseAlertDispatcher",
    "SoundDeviceAlertSink",
]
