"""Tests for the typer CLI and the rich dashboard."""

import io
import json

from rich.console import Console
from typer.testing import CliRunner

from blitz_remote import runner
from blitz_remote.client.connection_manager import ConnectionManager
from blitz_remote.client.visualizer import Dashboard
from blitz_remote.shared.models import BluetoothDevice, ConnectionTarget, ErrorEvent, MediaInfo, WifiInfo

from conftest import FakeConnector, FakeWebSocket


class EchoWebSocket(FakeWebSocket):
    """Answers every command with a command_output frame."""

    async def send(self, message: str) -> None:
        await super().send(message)
        command = json.loads(message)["command"]
        self.push(json.dumps({"status": "command_output", "output": f"ran {command}"}))


class EchoConnector(FakeConnector):
    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        ws = EchoWebSocket(url)
        self.sockets.append(ws)
        return ws


def render(dashboard: Dashboard) -> str:
    console = Console(file=io.StringIO(), width=160, height=40)
    console.print(dashboard.generate_layout())
    return console.file.getvalue()


class TestCommands:
    def test_lists_known_commands(self) -> None:
        result = CliRunner().invoke(runner.app, ["commands"])

        assert result.exit_code == 0
        assert "player_toggle" in result.output
        assert "open_edge" in result.output


class TestSendOnce:
    async def test_prints_command_output(self, monkeypatch, capsys) -> None:
        connector = EchoConnector()
        monkeypatch.setattr(runner, "ConnectionManager", lambda: ConnectionManager(connector=connector))

        code = await runner._send_once(ConnectionTarget(host="127.0.0.1", port=8765, path="/ws"), "git_status", 1.0)

        assert code == 0
        assert "ran git_status" in capsys.readouterr().out
        assert connector.last.closed

    async def test_reports_connection_failure(self, monkeypatch, capsys) -> None:
        connector = FakeConnector()
        connector.plan = [ConnectionRefusedError("refused")]
        monkeypatch.setattr(runner.settings, "CONNECT_TIMEOUT_S", 0.1)
        monkeypatch.setattr(
            runner, "ConnectionManager", lambda: ConnectionManager(connector=connector, retry_delay_s=5.0)
        )

        code = await runner._send_once(ConnectionTarget(host="127.0.0.1", port=8765, path="/ws"), "git_status", 1.0)

        assert code == 1
        assert "Connection failed: refused. Retry 0/5" in capsys.readouterr().err


class TestDashboard:
    def test_placeholders(self) -> None:
        manager = ConnectionManager(connector=FakeConnector())
        dashboard = Dashboard(manager, ConnectionTarget(host="127.0.0.1", port=8765, path="/ws"))

        output = render(dashboard)

        assert "No track playing" in output
        assert "Disconnected" in output
        assert "ws://127.0.0.1:8765/ws" in output

    def test_renders_stream_values(self) -> None:
        manager = ConnectionManager(connector=FakeConnector())
        dashboard = Dashboard(manager, ConnectionTarget(host="127.0.0.1", port=8765, path="/ws"))
        dashboard.attach()
        streams = manager.streams

        streams.media_info.publish(MediaInfo(title="Teardrop", artist="Massive Attack", duration_micros=329_000_000,
                                             position_micros=61_000_000, status="Playing"))
        streams.bluetooth_devices.publish([BluetoothDevice(name="Buds", mac_address="AA:BB", connected=True,
                                                           battery_percent=80)])
        streams.wifi_info.publish(WifiInfo(ssid="Home", connected=True, download_speed_mbps=12.5))
        streams.command_output.publish("On branch main")
        streams.error_message.publish(ErrorEvent(message="Connection timed out. Retry 1/5"))

        output = render(dashboard)
        dashboard.detach()

        assert "Teardrop" in output
        assert "1:01 / 5:29" in output
        assert "Buds" in output
        assert "80%" in output
        assert "12.5 Mbps" in output
        assert "On branch main" in output
        assert "Connection timed out. Retry 1/5" in output
