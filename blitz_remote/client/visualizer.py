"""
MODULE OVERVIEW:
The Rich Terminal Dashboard.

WHAT IS HAPPENING HERE:
This is a stand-in for the phone UI. It subscribes to every state stream the
connection manager feeds, keeps a short timeline of connection state changes,
and redraws a Rich Layout a few times per second. It never talks to the socket
directly; it only calls connect() at start and shutdown() at the end.
"""

from rich.live import Live
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.markup import escape
from collections import deque
from datetime import datetime
import asyncio

from blitz_remote.client.connection_manager import ConnectionManager
from blitz_remote.client.formatting import format_speed, format_time, progress
from blitz_remote.shared.models import ConnectionState, ConnectionTarget

STATE_COLORS = {
    ConnectionState.CONNECTED: "green",
    ConnectionState.CONNECTING: "yellow",
    ConnectionState.DISCONNECTED: "red",
}

class Dashboard:
    def __init__(self, manager: ConnectionManager, target: ConnectionTarget):
        self.manager = manager
        self.streams = manager.streams
        self.target = target
        self.timeline = deque(maxlen=6)
        self.output_lines = deque(maxlen=12)
        self._unsubscribe = []

    def on_state_change(self, state: ConnectionState):
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] {state.value}")

    def on_command_output(self, output):
        if output:
            self.output_lines.extend(output.splitlines() or [""])

    def attach(self):
        self._unsubscribe = [
            self.streams.connection_state.subscribe(self.on_state_change),
            self.streams.command_output.subscribe(self.on_command_output),
        ]

    def detach(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def _now_playing(self) -> Panel:
        media = self.streams.media_info.value
        if media is None or not media.has_track:
            return Panel("No track playing", title="Now Playing")
        artwork = self.streams.artwork.value
        filled = int(progress(media) * 30)
        lines = [
            f"[bold]{escape(media.title or 'Unknown title')}[/]",
            escape(media.artist or "Unknown artist"),
            f"[dim]{escape(media.album or '')}[/]",
            "█" * filled + "░" * (30 - filled),
            f"{format_time(media.position_micros)} / {format_time(media.duration_micros)}"
            f"  {'▶' if media.is_playing else '⏸'} {media.status or ''}",
        ]
        if artwork is not None and artwork.url:
            lines.append("[dim]art: embedded[/]" if artwork.is_data_uri else f"[dim]art: {escape(artwork.url[:60])}[/]")
        return Panel("\n".join(lines), title="Now Playing")

    def _devices(self) -> Panel:
        table = Table(expand=True)
        table.add_column("Device", style="cyan")
        table.add_column("MAC", style="magenta")
        table.add_column("Battery", justify="right", style="green")
        for device in self.streams.bluetooth_devices.value:
            battery = f"{device.battery_percent}%" if device.battery_percent is not None else "-"
            table.add_row(escape(device.name or "Unknown"), device.mac_address or "-", battery)
        return Panel(table, title="Bluetooth")

    def _wifi(self) -> Panel:
        wifi = self.streams.wifi_info.value
        if wifi is None or not wifi.connected:
            return Panel("Not connected", title="WiFi")
        text = (
            f"SSID: {escape(wifi.ssid or '-')}\n"
            f"Signal: {wifi.signal_strength if wifi.signal_strength is not None else '-'}\n"
            f"Link: {wifi.link_speed_mbps if wifi.link_speed_mbps is not None else '-'} Mbps\n"
            f"↓ {format_speed(wifi.download_speed_mbps)}  ↑ {format_speed(wifi.upload_speed_mbps)}\n"
            f"IP: {wifi.ip_address or '-'} ({wifi.interface_name or '-'})"
        )
        return Panel(text, title="WiFi")

    def generate_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main"),
            Layout(name="footer", size=3)
        )
        layout["main"].split_row(
            Layout(name="left", ratio=2),
            Layout(name="right", ratio=1)
        )
        layout["left"].split_column(
            Layout(name="player"),
            Layout(name="output")
        )
        layout["right"].split_column(
            Layout(name="bluetooth"),
            Layout(name="wifi"),
            Layout(name="timeline")
        )

        state = self.manager.state
        color = STATE_COLORS[state]
        retry = self.manager.retry
        layout["header"].update(Panel(
            f"[{color} bold]{self.target.url} | {state.value} | Retry {retry.attempt}/{retry.max_retries}[/]",
            style=color
        ))

        layout["player"].update(self._now_playing())
        layout["output"].update(Panel(Text("\n".join(self.output_lines)), title="Command Output"))
        layout["bluetooth"].update(self._devices())
        layout["wifi"].update(self._wifi())
        layout["timeline"].update(Panel("\n".join(self.timeline), title="Timeline"))

        error = self.streams.error_message.value
        layout["footer"].update(Panel(Text(error.message if error else ""), title="Error", style="red" if error else "dim"))
        return layout

    async def run(self, duration_s: float):
        self.attach()
        self.manager.connect(self.target)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_s
        try:
            with Live(self.generate_layout(), refresh_per_second=4) as live:
                while loop.time() < deadline:
                    live.update(self.generate_layout())
                    await asyncio.sleep(0.25)
        finally:
            self.detach()
            await self.manager.shutdown()
