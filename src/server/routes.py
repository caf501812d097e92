"""Plain HTTP endpoints served next to the clock websocket."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Callable, Optional

from websockets.datastructures import Headers
from websockets.http11 import Response

from contracts.ui_protocol import EVENT_SESSION, EVENT_SETTINGS, EVENT_STATE_UPDATE, STATE_IDLE

from .config import HEALTHZ_PATH, STATE_PATH
from .events import StickyEventStore


class HttpRoutes:
    """Answers `/healthz` and `/state` from the server's sticky events.

    `/state` merges the latest session, settings and runtime state into one
    document so a client can render the clock without opening a websocket.
    """
    def __init__(
        self,
        sticky_events: StickyEventStore,
        *,
        client_count: Callable[[], int],
    ):
        self._sticky_events = sticky_events
        self._client_count = client_count

    def respond(self, path: str) -> Optional[Response]:
        if path == HEALTHZ_PATH:
            return json_response(
                HTTPStatus.OK,
                {"status": "ok", "clients": self._client_count()},
            )
        if path == STATE_PATH:
            return self._state()
        return json_response(HTTPStatus.NOT_FOUND, {"error": f"no route for {path}"})

    def current_state(self) -> str:
        state_event = self._sticky_events.latest_payload(EVENT_STATE_UPDATE)
        if state_event is None:
            return STATE_IDLE
        return str(state_event.get("state", STATE_IDLE))

    def _state(self) -> Response:
        session = self._sticky_events.latest_payload(EVENT_SESSION)
        if session is None:
            return json_response(
                HTTPStatus.SERVICE_UNAVAILABLE,
                {"error": "no session state yet"},
            )
        return json_response(
            HTTPStatus.OK,
            {
                "state": self.current_state(),
                "session": _without_envelope(session),
                "settings": _without_envelope(
                    self._sticky_events.latest_payload(EVENT_SETTINGS) or {}
                ),
                "updated_at": session.get("timestamp"),
            },
        )


def json_response(status: HTTPStatus, payload: dict[str, Any]) -> Response:
    body = (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")
    headers = Headers()
    headers["Content-Type"] = "application/json; charset=utf-8"
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status.value, status.phrase, headers, body)


def _without_envelope(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in payload.items()
        if key not in ("type", "timestamp")
    }
