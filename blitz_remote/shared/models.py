"""
MODULE OVERVIEW:
This module defines the strictly typed data structures exchanged with the
remote-control host, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
The host speaks JSON with a `status` discriminator. Each known status value has
its own frame model, and each frame carries one payload model. Wire keys are
kept exactly as the host sends them through aliases: media info uses
capitalised keys (`Title`, `Length`, ...) while every other payload uses
lower camel case (`macAddress`, `downloadSpeed`, ...). Python code only ever
sees the snake_case field names.
"""
from enum import Enum
from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

# WHAT IS HAPPENING HERE:
# Everything the host sends is parsed leniently: unknown keys are dropped so a
# newer host can add fields without breaking older clients.
class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ConnectionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"


class ConnectionTarget(BaseModel):
    """Where to connect. Immutable once handed to the connection manager."""
    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    path: str = "/"

    @property
    def url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"ws://{host}:{self.port}{path}"

    @classmethod
    def from_url(cls, url: str) -> "ConnectionTarget":
        parts = urlsplit(url)
        if parts.scheme != "ws":
            raise ValueError(f"Only ws:// URLs are supported, got {url!r}")
        if not parts.hostname:
            raise ValueError(f"Missing host in {url!r}")
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        return cls(host=parts.hostname, port=parts.port or 80, path=path)

    def __str__(self) -> str:
        return self.url


# ==========================
# PAYLOADS
# ==========================
class MediaInfo(WireModel):
    title: Optional[str] = Field(None, alias="Title")
    artist: Optional[str] = Field(None, alias="Artist")
    album: Optional[str] = Field(None, alias="Album")
    # Either a data: URI with the embedded image or a remote URL.
    album_art_ref: Optional[str] = Field(None, alias="Artwork")
    duration_micros: Optional[float] = Field(None, alias="Length")
    position_micros: Optional[float] = Field(None, alias="Position")
    status: Optional[str] = Field(None, alias="Status")

    @property
    def is_playing(self) -> bool:
        return self.status == "Playing"

    @property
    def has_track(self) -> bool:
        return bool(self.title or self.artist or self.album)


class ArtWork(WireModel):
    url: Optional[str] = None

    @property
    def is_data_uri(self) -> bool:
        return bool(self.url) and self.url.startswith("data:")


class BluetoothDevice(WireModel):
    name: Optional[str] = None
    mac_address: Optional[str] = Field(None, alias="macAddress")
    connected: bool = False
    battery_percent: Optional[int] = Field(None, alias="battery")
    icon_ref: Optional[str] = Field(None, alias="icon")


class WifiInfo(WireModel):
    ssid: Optional[str] = None
    signal_strength: Optional[int] = Field(None, alias="signalStrength")
    link_speed_mbps: Optional[int] = Field(None, alias="linkSpeed")
    frequency: Optional[str] = None
    security: Optional[str] = None
    ip_address: Optional[str] = Field(None, alias="ipAddress")
    connected: Optional[bool] = None
    download_speed_mbps: Optional[float] = Field(None, alias="downloadSpeed")
    upload_speed_mbps: Optional[float] = Field(None, alias="uploadSpeed")
    interface_name: Optional[str] = Field(None, alias="interface")
    speed_unit: Optional[str] = Field(None, alias="unitOfSpeed")


class ErrorEvent(BaseModel):
    message: str


# ==========================
# FRAMES
# ==========================
# WHAT IS HAPPENING HERE:
# A closed set of variants keyed on `status`. Anything the client does not
# recognise becomes an UnknownFrame, which the dispatcher drops on the floor.
class PlayerFrame(WireModel):
    status: Literal["player"]
    output: MediaInfo
    artwork: Optional[str] = None


class BluetoothFrame(WireModel):
    status: Literal["bluetooth"]
    bluetooth: list[BluetoothDevice]


class WifiFrame(WireModel):
    status: Literal["wifi"]
    wifi: WifiInfo


class CommandOutputFrame(WireModel):
    status: Literal["command_output"]
    output: str


class UnknownFrame(WireModel):
    status: Optional[str] = None


FRAME_TYPES: dict[str, type[WireModel]] = {
    "player": PlayerFrame,
    "bluetooth": BluetoothFrame,
    "wifi": WifiFrame,
    "command_output": CommandOutputFrame,
}


class CommandRequest(BaseModel):
    """The only frame the client ever sends."""
    command: str


# Commands the host understands today. The client never validates against this
# list; it only feeds CLI help and the dashboard key map.
KNOWN_COMMANDS: dict[str, str] = {
    "player_toggle": "Play/Pause",
    "player_next": "Next",
    "player_prev": "Previous",
    "system_update": "Update",
    "list_home": "List Home",
    "git_status": "Git Status",
    "open_firefox": "Firefox",
    "open_vscode": "VSCode",
    "open_edge": "Edge",
}
