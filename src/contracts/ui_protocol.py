"""Websocket event, state, and command constants for the clock UI protocol."""

from __future__ import annotations

# Websocket event types
EVENT_HELLO = "hello"
EVENT_STATE_UPDATE = "state_update"
EVENT_SESSION = "session"
EVENT_PHASE_COMPLETED = "phase_completed"
EVENT_SETTINGS = "settings"
EVENT_COMMAND_RESULT = "command_result"
EVENT_COMMAND_ACK = "command_ack"
EVENT_ERROR = "error"

# UI runtime states
STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_PAUSED = "paused"
STATE_ERROR = "error"

# Commands accepted from websocket clients
COMMAND_START = "start"
COMMAND_PAUSE = "pause"
COMMAND_TOGGLE = "toggle"
COMMAND_RESET = "reset"
COMMAND_UPDATE_SETTINGS = "update_settings"
COMMAND_SYNC = "sync"

COMMAND_NAMES: frozenset[str] = frozenset(
    {
        COMMAND_START,
        COMMAND_PAUSE,
        COMMAND_TOGGLE,
        COMMAND_RESET,
        COMMAND_UPDATE_SETTINGS,
        COMMAND_SYNC,
    }
)

# Replayed to new clients; current clock state only.
STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_STATE_UPDATE,
        EVENT_SESSION,
        EVENT_SETTINGS,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_SETTINGS,
    EVENT_SESSION,
    EVENT_STATE_UPDATE,
)
