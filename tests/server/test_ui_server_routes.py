import json
import sys
import types
import unittest
from pathlib import Path

from websockets.datastructures import Headers
from websockets.http11 import Request

# Import server.service without executing src/server/__init__.py.
_SERVER_DIR = Path(__file__).resolve().parents[2] / "src" / "server"
if "server" not in sys.modules:
    _pkg = types.ModuleType("server")
    _pkg.__path__ = [str(_SERVER_DIR)]  # type: ignore[attr-defined]
    sys.modules["server"] = _pkg

from server.config import UIServerConfig
from server.service import UIServer


def _get(server: UIServer, path: str):
    request = Request(path=path, headers=Headers())
    return server._process_request(None, request)


def _body(response) -> dict:
    return json.loads(response.body.decode("utf-8"))


class UIServerRoutesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = UIServer(config=UIServerConfig(host="127.0.0.1", port=8765))

    def test_healthz_reports_status_and_client_count(self) -> None:
        response = _get(self.server, "/healthz")

        self.assertEqual(200, response.status_code)
        self.assertEqual({"status": "ok", "clients": 0}, _body(response))
        self.assertEqual("no-store", response.headers["Cache-Control"])

    def test_state_is_unavailable_until_session_published(self) -> None:
        response = _get(self.server, "/state")

        self.assertEqual(503, response.status_code)
        self.assertEqual("no session state yet", _body(response)["error"])

    def test_state_merges_session_settings_and_runtime_state(self) -> None:
        self.server.publish("settings", work_duration_seconds=1500, break_duration_seconds=300)
        self.server.publish("session", phase="work", remaining_seconds=1499, is_running=True)
        self.server.publish_state("running", message="作業中")

        response = _get(self.server, "/state")

        self.assertEqual(200, response.status_code)
        self.assertEqual("application/json; charset=utf-8", response.headers["Content-Type"])
        payload = _body(response)
        self.assertEqual("running", payload["state"])
        self.assertEqual(
            {"phase": "work", "remaining_seconds": 1499, "is_running": True},
            payload["session"],
        )
        self.assertEqual(300, payload["settings"]["break_duration_seconds"])
        self.assertNotIn("type", payload["settings"])
        self.assertIsNotNone(payload["updated_at"])

    def test_websocket_path_is_left_to_handshake(self) -> None:
        self.assertIsNone(_get(self.server, "/ws"))
        self.assertIsNone(_get(self.server, "/ws?client=panel"))

    def test_unknown_path_returns_not_found(self) -> None:
        response = _get(self.server, "/index.html")

        self.assertEqual(404, response.status_code)
        self.assertIn("/index.html", _body(response)["error"])


class UIServerHelloTests(unittest.TestCase):
    def test_hello_defaults_to_idle_and_lists_commands(self) -> None:
        server = UIServer(config=UIServerConfig(max_command_bytes=2048))

        hello = json.loads(server.hello_message())

        self.assertEqual("hello", hello["type"])
        self.assertEqual("idle", hello["state"])
        self.assertEqual(2048, hello["max_command_bytes"])
        self.assertEqual(
            ["pause", "reset", "start", "sync", "toggle", "update_settings"],
            hello["commands"],
        )

    def test_hello_reports_latest_published_state(self) -> None:
        server = UIServer(config=UIServerConfig())
        server.publish_state("paused")

        hello = json.loads(server.hello_message())

        self.assertEqual("paused", hello["state"])


class UIServerCommandTests(unittest.TestCase):
    def test_text_frame_is_handed_over_and_acknowledged(self) -> None:
        server = UIServer(config=UIServerConfig())
        received: list[str] = []

        def handler(raw: str) -> bool:
            received.append(raw)
            return True

        server.set_command_handler(handler)

        reply = json.loads(server.receive_command('{"command": "start"}'))

        self.assertEqual(['{"command": "start"}'], received)
        self.assertEqual("command_ack", reply["type"])
        self.assertTrue(reply["queued"])

    def test_dropped_command_is_acknowledged_as_not_queued(self) -> None:
        server = UIServer(config=UIServerConfig())
        server.set_command_handler(lambda raw: False)

        reply = json.loads(server.receive_command('{"command": "pause"}'))

        self.assertFalse(reply["queued"])

    def test_binary_frame_is_rejected_without_reaching_handler(self) -> None:
        server = UIServer(config=UIServerConfig())
        received: list[str] = []
        server.set_command_handler(received.append)

        reply = json.loads(server.receive_command(b'{"command": "start"}'))

        self.assertEqual("error", reply["type"])
        self.assertEqual([], received)

    def test_handler_failure_is_logged_and_reported_to_sender(self) -> None:
        server = UIServer(config=UIServerConfig())

        def failing_handler(raw: str) -> bool:
            raise RuntimeError("boom")

        server.set_command_handler(failing_handler)

        with self.assertLogs("ui_server", level="ERROR"):
            reply = json.loads(server.receive_command('{"command": "pause"}'))

        self.assertEqual("error", reply["type"])
        self.assertEqual("error", reply["state"])

    def test_without_handler_command_is_not_queued(self) -> None:
        server = UIServer(config=UIServerConfig())

        reply = json.loads(server.receive_command('{"command": "pause"}'))

        self.assertEqual("command_ack", reply["type"])
        self.assertFalse(reply["queued"])

    def test_acks_and_errors_are_not_replayed_to_new_clients(self) -> None:
        server = UIServer(config=UIServerConfig())
        server.receive_command(b"\x00")
        server.publish("error", state="error", message="Unsupported command: jump")
        server.publish("phase_completed", previous_phase="work", next_phase="break")

        self.assertEqual([], server._sticky_events.snapshot())

    def test_publish_without_running_loop_only_updates_sticky_events(self) -> None:
        server = UIServer(config=UIServerConfig())

        server.publish("session", phase="idle", remaining_seconds=1500)

        self.assertFalse(server.is_running)
        self.assertEqual(1, len(server._sticky_events.snapshot()))


if __name__ == "__main__":
    unittest.main()
