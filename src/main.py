import logging
import signal
import sys
from typing import Callable, Optional

from app_config import (
    NOTIFICATION_BACKEND_LOG,
    AppConfig,
    AppConfigurationError,
    load_app_config,
    resolve_config_path,
)
from alerts import (
    AlertError,
    BackgroundMusicPlayer,
    DesktopNotificationSink,
    LoggingNotificationSink,
    PhaseAlertDispatcher,
    SoundDeviceAlertSink,
)
from pomodoro import ClockSettings
from pomodoro.contracts import NotificationSink
from runtime import RuntimeBootstrap, RuntimeEngine, RuntimeHooks
from server import ServerConfigurationError, UIServer, UIServerConfig
from settings import JsonSettingsStore


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("pomodoro_app")


def setup_signal_handlers(request_stop: Callable[[], None]) -> None:
    """Set up graceful shutdown on SIGTERM and SIGINT."""

    def signal_handler(signum: int, frame) -> None:
        signal_name = signal.Signals(signum).name
        logging.getLogger("pomodoro_app").info("%s received, stopping...", signal_name)
        request_stop()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def default_settings(app_config: AppConfig) -> ClockSettings:
    """Settings used for keys missing from the persisted settings file."""
    clock = app_config.clock
    return ClockSettings(
        work_duration_seconds=clock.work_duration_seconds,
        break_duration_seconds=clock.break_duration_seconds,
        auto_advance=clock.auto_advance,
        sound_enabled=clock.sound_enabled,
        bgm_enabled=clock.bgm_enabled,
    )


def build_notifier(app_config: AppConfig) -> Optional[NotificationSink]:
    settings = app_config.notifications
    if not settings.enabled:
        return None
    if settings.backend == NOTIFICATION_BACKEND_LOG:
        return LoggingNotificationSink(logger=logging.getLogger("alerts.notification"))
    return DesktopNotificationSink(
        app_name=settings.app_name,
        timeout_seconds=settings.timeout_seconds,
        logger=logging.getLogger("alerts.notification"),
    )


def build_alerts(
    app_config: AppConfig,
    settings: ClockSettings,
    logger: logging.Logger,
) -> PhaseAlertDispatcher:
    sound: Optional[SoundDeviceAlertSink] = None
    if app_config.sound.enabled:
        try:
            sound = SoundDeviceAlertSink(
                output_device_index=app_config.sound.output_device,
                frequency_hz=app_config.sound.alert_frequency_hz,
                duration_seconds=app_config.sound.alert_duration_seconds,
                volume=app_config.sound.alert_volume,
                logger=logging.getLogger("alerts.sound"),
            )
        except AlertError as error:
            logger.error("Alert sound initialization error: %s", error)
            logger.warning("Continuing without alert sound.")

    bgm: Optional[BackgroundMusicPlayer] = None
    if app_config.bgm.file:
        player = BackgroundMusicPlayer(
            app_config.bgm.file,
            volume=app_config.bgm.volume,
            output_device_index=app_config.sound.output_device,
            logger=logging.getLogger("alerts.bgm"),
        )
        if player.load():
            bgm = player

    return PhaseAlertDispatcher(
        settings=settings,
        notifier=build_notifier(app_config),
        sound=sound,
        bgm=bgm,
        logger=logging.getLogger("alerts"),
    )


def start_ui_server(app_config: AppConfig, logger: logging.Logger) -> Optional[UIServer]:
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")
        return None

    if not ui_server_config.enabled:
        return None

    try:
        ui_server = UIServer(
            config=ui_server_config,
            logger=logging.getLogger("ui_server"),
        )
        logger.info("Starting UI server...")
        ui_server.start(timeout_seconds=5.0)
        logger.info(
            "UI server ready at ws://%s:%d%s",
            ui_server.host,
            ui_server.port,
            ui_server.websocket_path,
        )
        return ui_server
    except Exception as error:
        logger.error("UI server startup failed: %s", error)
        logger.warning("Continuing without UI server.")
        return None


def main() -> int:
    """Run the pomodoro session clock."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config(str(config_path))
        logger.info("Loaded runtime config: %s", config_path)
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    settings_store = JsonSettingsStore(
        app_config.settings_store.path,
        defaults=default_settings(app_config),
        logger=logging.getLogger("settings"),
    )
    settings = settings_store.load()
    logger.info(
        "Session settings: work=%ss break=%ss auto_advance=%s sound=%s bgm=%s",
        settings.work_duration_seconds,
        settings.break_duration_seconds,
        settings.auto_advance,
        settings.sound_enabled,
        settings.bgm_enabled,
    )

    alerts = build_alerts(app_config, settings, logger)
    ui_server = start_ui_server(app_config, logger)

    engine = RuntimeEngine(
        RuntimeBootstrap(
            logger=logging.getLogger("runtime"),
            app_config=app_config,
            settings=settings,
            settings_store=settings_store,
            alerts=alerts,
            ui_server=ui_server,
            hooks=RuntimeHooks(setup_signal_handlers=setup_signal_handlers),
        )
    )
    return engine.run()


if __name__ == "__main__":
    sys.exit(main())
