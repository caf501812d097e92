"""Runtime orchestration: asyncio loop owning the session clock and UI commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app_config import AppConfig
from alerts.dispatcher import PhaseAlertDispatcher
from pomodoro import AsyncioScheduler, ClockSettings, SessionClock
from pomodoro.constants import REASON_STARTUP
from pomodoro.contracts import SettingsStore
from server import UIServer

from .commands import RuntimeCommandDispatcher
from .ui import RuntimeUIPublisher, UISessionEventPublisher


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    setup_signal_handlers: Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime engine."""
    logger: logging.Logger
    app_config: AppConfig
    settings: ClockSettings
    settings_store: Optional[SettingsStore]
    alerts: PhaseAlertDispatcher
    ui_server: Optional[UIServer]
    hooks: RuntimeHooks


class RuntimeEngine:
    """Runs the clock on a private event loop until a stop is requested.

    The loop thread is the clock's only writer: UI commands and stop requests
    from other threads are handed over with `call_soon_threadsafe`.
    """
    def __init__(
        self,
        bootstrap: RuntimeBootstrap,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        self._loop = loop or asyncio.new_event_loop()
        self._stop_event = asyncio.Event()

        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._clock = SessionClock(
            AsyncioScheduler(self._loop),
            settings=bootstrap.settings,
            publishers=(bootstrap.alerts, UISessionEventPublisher(self._ui)),
            settings_store=bootstrap.settings_store,
            logger=logging.getLogger("pomodoro"),
        )
        self._commands = RuntimeCommandDispatcher(
            clock=self._clock,
            ui=self._ui,
            logger=self._logger,
        )

    @property
    def clock(self) -> SessionClock:
        return self._clock

    def run(self) -> int:
        asyncio.set_event_loop(self._loop)
        try:
            return self._loop.run_until_complete(self._run_until_stopped())
        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            self._shutdown()

    def request_stop(self) -> None:
        """Ask the runtime to exit; safe to call from any thread or signal handler."""
        if self._loop.is_closed():
            return
        # The loop may close between the check and the hand-off.
        with contextlib.suppress(RuntimeError):
            self._loop.call_soon_threadsafe(self._set_stop_event)

    def submit_command(self, raw: str) -> bool:
        """Queue a raw UI command for execution on the clock's thread.

        Returns False once the loop is closed and the command was dropped.
        """
        if self._loop.is_closed():
            return False
        try:
            self._loop.call_soon_threadsafe(self._commands.handle_raw, raw)
        except RuntimeError:
            return False
        return True

    async def _run_until_stopped(self) -> int:
        self._bootstrap.hooks.setup_signal_handlers(self.request_stop)

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            ui_server.set_command_handler(self.submit_command)

        self._commands.publish_sync(REASON_STARTUP)

        if self._bootstrap.app_config.clock.autostart:
            self._clock.start()

        self._logger.info("Ready! Session clock is idle until started.")
        await self._stop_event.wait()
        return 0

    def _set_stop_event(self) -> None:
        self._stop_event.set()

    def _shutdown(self) -> None:
        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            ui_server.set_command_handler(None)

        self._logger.info("Stopping session clock...")
        self._clock.reset()
        self._bootstrap.alerts.stop()

        if ui_server is not None:
            self._logger.info("Stopping UI server...")
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)

        if not self._loop.is_closed():
            self._loop.close()
