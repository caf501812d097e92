"""Threaded websocket server carrying clock events out and commands in."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.ui_protocol import (
    COMMAND_NAMES,
    EVENT_COMMAND_ACK,
    EVENT_ERROR,
    EVENT_HELLO,
    EVENT_STATE_UPDATE,
    STATE_ERROR,
)

from .config import UIServerConfig
from .events import StickyEventStore, make_event
from .routes import HttpRoutes

# Receives one raw command frame; returns whether the clock queued it.
CommandHandler = Callable[[str], bool]

CLOSE_GOING_AWAY = 1001
CLOSE_TRY_AGAIN_LATER = 1013


class UIServer:
    """Websocket feed of clock events running on its own thread and loop.

    A new client gets a `hello` naming the clock state and the accepted
    commands, followed by the sticky settings, session and state events. Each
    text frame a client sends goes to the command handler and is answered to
    that client alone with a `command_ack` or an `error`.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._clients: set[ServerConnection] = set()
        self._sticky_events = StickyEventStore()
        self._routes = HttpRoutes(
            self._sticky_events,
            client_count=lambda: len(self._clients),
        )
        self._command_handler: Optional[CommandHandler] = None

        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_requested: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._failure: Optional[Exception] = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._ready.is_set()
            and self._failure is None
        )

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        self._command_handler = handler

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._failure = None
        self._ready.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            name="ui-server",
            daemon=True,
        )
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._failure is not None:
            raise RuntimeError(f"UI server startup failed: {self._failure}") from self._failure

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, stop_requested = self._loop, self._stop_requested
        if loop is not None and stop_requested is not None:
            # The loop may already be closed.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(stop_requested.set)

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    def publish(self, event_type: str, **payload) -> None:
        """Queue an event for every connected client; callable from any thread."""
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        loop = self._loop
        if loop is None or not self.is_running:
            return
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._broadcast, message)

    def publish_state(self, state: str, *, message: Optional[str] = None, **payload) -> None:
        if message:
            payload["message"] = message
        self.publish(EVENT_STATE_UPDATE, state=state, **payload)

    def hello_message(self) -> str:
        return make_event(
            EVENT_HELLO,
            state=self._routes.current_state(),
            commands=sorted(COMMAND_NAMES),
            max_command_bytes=self._config.max_command_bytes,
            message="UI websocket connected",
        )

    def receive_command(self, frame: str | bytes) -> str:
        """Hand one client frame to the command handler and build its reply."""
        if isinstance(frame, bytes):
            return _error_event("Commands must be sent as text frames.")

        handler = self._command_handler
        if handler is None:
            return make_event(
                EVENT_COMMAND_ACK,
                queued=False,
                message="Clock is not accepting commands.",
            )

        try:
            queued = handler(frame)
        except Exception as error:
            self._logger.error("UI command handler failed: %s", error, exc_info=True)
            return _error_event("Command could not be queued.")
        return make_event(EVENT_COMMAND_ACK, queued=bool(queued))

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as error:
            self._failure = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
        finally:
            self._loop = None
            self._stop_requested = None
            self._ready.set()

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_requested = asyncio.Event()
        async with serve(
            self._handle_connection,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            max_size=self._config.max_command_bytes,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server listening on %s (websocket: %s)",
                self._config.base_url,
                self._config.websocket_path,
            )
            self._ready.set()
            await self._stop_requested.wait()
            await self._close_clients()

    async def _handle_connection(self, connection: ServerConnection) -> None:
        if len(self._clients) >= self._config.max_clients:
            self._logger.warning(
                "Refusing UI client %s: %d clients connected",
                connection.remote_address,
                len(self._clients),
            )
            await connection.close(code=CLOSE_TRY_AGAIN_LATER, reason="Too many UI clients")
            return

        self._clients.add(connection)
        self._logger.info("Client connected: %s", connection.remote_address)
        try:
            await connection.send(self.hello_message())
            for message in self._sticky_events.snapshot():
                await connection.send(message)
            async for frame in connection:
                self._logger.debug("Received from UI: %s", frame)
                await connection.send(self.receive_command(frame))
        except ConnectionClosed as closed:
            self._logger.info("Client disconnected: %s (%s)", connection.remote_address, closed)
        finally:
            self._clients.discard(connection)

    def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Optional[Response]:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None
        return self._routes.respond(path)

    def _broadcast(self, message: str) -> None:
        if self._clients:
            broadcast(self._clients, message)

    async def _close_clients(self) -> None:
        clients = tuple(self._clients)
        if clients:
            await asyncio.gather(
                *(
                    client.close(code=CLOSE_GOING_AWAY, reason="Server shutting down")
                    for client in clients
                ),
                return_exceptions=True,
            )
        self._clients.clear()


def _error_event(message: str) -> str:
    return make_event(EVENT_ERROR, state=STATE_ERROR, message=message)
