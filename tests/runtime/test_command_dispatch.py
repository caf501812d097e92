import json
import sys
import types
import unittest
from pathlib import Path
from typing import Any, Optional

from pomodoro import ClockSettings, ManualScheduler, SessionClock

# Import runtime modules without executing src/runtime/__init__.py.
_RUNTIME_DIR = Path(__file__).resolve().parents[2] / "src" / "runtime"
if "runtime" not in sys.modules:
    _pkg = types.ModuleType("runtime")
    _pkg.__path__ = [str(_RUNTIME_DIR)]  # type: ignore[attr-defined]
    sys.modules["runtime"] = _pkg

from runtime.commands import (
    CommandError,
    RuntimeCommandDispatcher,
    parse_command,
    parse_settings_update,
)
from runtime.ui import RuntimeUIPublisher


class _UIServerStub:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def publish(self, event_type: str, **payload: Any) -> None:
        self.events.append((event_type, payload))

    def publish_state(self, state: str, *, message: Optional[str] = None, **payload: Any) -> None:
        self.events.append(("state_update", {"state": state, "message": message, **payload}))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.events if name == event_type]


def _dispatcher(
    settings: Optional[ClockSettings] = None,
) -> tuple[RuntimeCommandDispatcher, SessionClock, ManualScheduler, _UIServerStub]:
    scheduler = ManualScheduler()
    clock = SessionClock(scheduler, settings=settings or ClockSettings())
    server = _UIServerStub()
    dispatcher = RuntimeCommandDispatcher(clock=clock, ui=RuntimeUIPublisher(server))
    return dispatcher, clock, scheduler, server


class ParseCommandTests(unittest.TestCase):
    def test_normalizes_command_name_and_keeps_arguments(self) -> None:
        command = parse_command('{"command": " Update_Settings ", "work_minutes": 30}')

        self.assertEqual("update_settings", command.name)
        self.assertEqual({"work_minutes": 30}, dict(command.arguments))

    def test_rejects_malformed_payloads(self) -> None:
        for raw in ("not json", "[1, 2]", '{"command": 5}', '{"command": "explode"}'):
            with self.subTest(raw=raw):
                with self.assertRaises(CommandError):
                    parse_command(raw)


class ParseSettingsUpdateTests(unittest.TestCase):
    def test_converts_minutes_and_keeps_missing_fields(self) -> None:
        current = ClockSettings(sound_enabled=False, bgm_enabled=True)

        update = parse_settings_update({"work_minutes": 50, "auto_advance": True}, current)

        self.assertEqual(3000, update.work_seconds)
        self.assertEqual(300, update.break_seconds)
        self.assertTrue(update.auto_advance)
        self.assertFalse(update.sound_enabled)
        self.assertTrue(update.bgm_enabled)

    def test_accepts_range_edges(self) -> None:
        update = parse_settings_update(
            {"work_minutes": 60, "break_minutes": 1},
            ClockSettings(),
        )

        self.assertEqual(3600, update.work_seconds)
        self.assertEqual(60, update.break_seconds)

    def test_rejects_out_of_range_and_wrong_types(self) -> None:
        cases = (
            {"work_minutes": 0},
            {"work_minutes": 61},
            {"break_minutes": 31},
            {"break_minutes": 2.5},
            {"work_minutes": True},
            {"sound_enabled": "yes"},
        )
        for arguments in cases:
            with self.subTest(arguments=arguments):
                with self.assertRaises(CommandError):
                    parse_settings_update(arguments, ClockSettings())


class RuntimeCommandDispatcherTests(unittest.TestCase):
    def test_start_command_runs_clock_and_reports_result(self) -> None:
        dispatcher, clock, scheduler, server = _dispatcher()

        result = dispatcher.handle_raw('{"command": "start"}')
        scheduler.advance(1)

        self.assertIsNotNone(result)
        self.assertTrue(clock.snapshot().is_running)
        self.assertEqual(1499, clock.snapshot().remaining_seconds)
        command_result = server.of_type("command_result")[-1]
        self.assertEqual("start", command_result["command"])
        self.assertTrue(command_result["accepted"])
        self.assertNotIn("message", command_result)

    def test_rejected_operation_carries_japanese_message(self) -> None:
        dispatcher, _, _, server = _dispatcher()

        dispatcher.handle_raw('{"command": "pause"}')

        command_result = server.of_type("command_result")[-1]
        self.assertFalse(command_result["accepted"])
        self.assertEqual("not_running", command_result["reason"])
        self.assertEqual("タイマーは動いていません。", command_result["message"])

    def test_toggle_alternates_between_start_and_pause(self) -> None:
        dispatcher, clock, _, _ = _dispatcher()

        dispatcher.handle_raw('{"command": "toggle"}')
        self.assertTrue(clock.snapshot().is_running)
        dispatcher.handle_raw('{"command": "toggle"}')
        self.assertFalse(clock.snapshot().is_running)

    def test_update_settings_applies_validated_minutes(self) -> None:
        dispatcher, clock, _, _ = _dispatcher()

        dispatcher.handle_raw(
            json.dumps({"command": "update_settings", "work_minutes": 45, "break_minutes": 15})
        )

        self.assertEqual(2700, clock.settings.work_duration_seconds)
        self.assertEqual(900, clock.settings.break_duration_seconds)
        self.assertEqual(2700, clock.snapshot().remaining_seconds)

    def test_invalid_settings_never_reach_clock(self) -> None:
        dispatcher, clock, _, server = _dispatcher()

        with self.assertLogs("runtime", level="WARNING"):
            result = dispatcher.handle_raw('{"command": "update_settings", "work_minutes": -5}')

        self.assertIsNone(result)
        self.assertEqual(1500, clock.settings.work_duration_seconds)
        error = server.of_type("error")[-1]
        self.assertEqual("update_settings", error["command"])
        self.assertEqual("error", error["state"])

    def test_malformed_command_publishes_error(self) -> None:
        dispatcher, _, _, server = _dispatcher()

        with self.assertLogs("runtime", level="WARNING"):
            dispatcher.handle_raw("{")

        self.assertEqual(1, len(server.of_type("error")))
        self.assertNotIn("command", server.of_type("error")[0])

    def test_sync_republishes_settings_session_and_state(self) -> None:
        dispatcher, _, _, server = _dispatcher()

        result = dispatcher.handle_raw('{"command": "sync"}')

        self.assertIsNone(result)
        self.assertEqual(
            ["settings", "session", "state_update"],
            [name for name, _ in server.events],
        )
        session = server.of_type("session")[0]
        self.assertEqual("sync", session["action"])
        self.assertEqual("25:00", session["display"])
        self.assertEqual("idle", server.of_type("state_update")[0]["state"])


if __name__ == "__main__":
    unittest.main()
