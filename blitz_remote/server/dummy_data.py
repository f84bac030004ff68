"""
MODULE OVERVIEW:
Fake host state and the async generators that push it to demo clients.

WHAT IS HAPPENING HERE:
The real host reads MPRIS, BlueZ and NetworkManager. Here a `DemoHost` holds a
tiny playlist, a couple of Bluetooth devices and a jittery WiFi link, and
answers commands the way the real host does: with a `command_output` frame.
Frames are built from the same Pydantic models the client decodes, dumped
with `by_alias=True` so the wire keys match exactly.
"""

import asyncio
import random
from typing import Any, AsyncGenerator

from blitz_remote.shared.models import BluetoothDevice, MediaInfo, WifiInfo

PLAYLIST = [
    {"title": "Windowlicker", "artist": "Aphex Twin", "album": "Windowlicker", "length_s": 366},
    {"title": "Teardrop", "artist": "Massive Attack", "album": "Mezzanine", "length_s": 329},
    {"title": "Roygbiv", "artist": "Boards of Canada", "album": "Music Has the Right to Children", "length_s": 151},
]

class DemoHost:
    def __init__(self):
        self.track_index = 0
        self.position_s = 0.0
        self.playing = True
        self.download_mbps = 48.0
        self.devices = [
            BluetoothDevice(name="Buds Pro", mac_address="AA:BB:CC:DD:EE:01", connected=True, battery_percent=80),
            BluetoothDevice(name="MX Keys", mac_address="AA:BB:CC:DD:EE:02", connected=True, battery_percent=55),
            BluetoothDevice(name="Old Speaker", mac_address="AA:BB:CC:DD:EE:03", connected=False),
        ]

    def tick(self, elapsed_s: float) -> None:
        if not self.playing:
            return
        self.position_s += elapsed_s
        if self.position_s >= PLAYLIST[self.track_index]["length_s"]:
            self.skip(1)

    def skip(self, step: int) -> None:
        self.track_index = (self.track_index + step) % len(PLAYLIST)
        self.position_s = 0.0

    def player_frame(self) -> dict[str, Any]:
        track = PLAYLIST[self.track_index]
        media = MediaInfo(
            title=track["title"],
            artist=track["artist"],
            album=track["album"],
            duration_micros=track["length_s"] * 1_000_000,
            position_micros=self.position_s * 1_000_000,
            status="Playing" if self.playing else "Paused",
        )
        return {
            "status": "player",
            "output": media.model_dump(by_alias=True),
            "artwork": f"https://covers.example/{self.track_index}.jpg",
        }

    def bluetooth_frame(self) -> dict[str, Any]:
        for device in self.devices:
            if device.connected and device.battery_percent:
                device.battery_percent = max(1, device.battery_percent - random.choice([0, 0, 1]))
        return {"status": "bluetooth", "bluetooth": [d.model_dump(by_alias=True) for d in self.devices]}

    def wifi_frame(self) -> dict[str, Any]:
        self.download_mbps = max(0.2, self.download_mbps + random.uniform(-8.0, 8.0))
        wifi = WifiInfo(
            ssid="Home",
            signal_strength=random.randint(-65, -45),
            link_speed_mbps=866,
            frequency="5 GHz",
            security="WPA2",
            ip_address="192.168.1.109",
            connected=True,
            download_speed_mbps=round(self.download_mbps, 2),
            upload_speed_mbps=round(random.uniform(0.5, 12.0), 2),
            interface_name="wlan0",
            speed_unit="Mbps",
        )
        return {"status": "wifi", "wifi": wifi.model_dump(by_alias=True)}

    def handle_command(self, command: str) -> str:
        if command == "player_toggle":
            self.playing = not self.playing
            return "Playback " + ("resumed" if self.playing else "paused")
        if command == "player_next":
            self.skip(1)
            return f"Skipped to {PLAYLIST[self.track_index]['title']}"
        if command == "player_prev":
            self.skip(-1)
            return f"Back to {PLAYLIST[self.track_index]['title']}"
        if command == "git_status":
            return "On branch main\nnothing to commit, working tree clean"
        if command == "list_home":
            return "Desktop\nDocuments\nDownloads\nMusic\nprojects"
        if command == "system_update":
            return "0 upgraded, 0 newly installed, 0 to remove and 0 not upgraded."
        if command.startswith("open_"):
            return f"Launched {command[len('open_'):]}"
        return f"Unknown command: {command}"

    def command_output_frame(self, command: str) -> dict[str, Any]:
        return {"status": "command_output", "output": self.handle_command(command)}


async def status_generator(host: DemoHost, interval_s: float) -> AsyncGenerator[dict[str, Any], None]:
    """Emits player, bluetooth and wifi frames every `interval_s` seconds, first batch immediately."""
    while True:
        yield host.player_frame()
        yield host.bluetooth_frame()
        yield host.wifi_frame()
        await asyncio.sleep(interval_s)
        host.tick(interval_s)
