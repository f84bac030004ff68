"""
MODULE OVERVIEW:
Observable state streams shared between the connection core and whatever
presentation layer sits on top of it (the rich dashboard, the CLI, tests).

WHAT IS HAPPENING HERE:
Each stream remembers the last value published to it and calls its
subscribers synchronously, in subscription order, on every publish. Everything
runs on one asyncio event loop, so a publish never races another publish.
The core only writes; the presentation layer only reads and subscribes.
"""

from typing import Any, Callable, Generic, List, Optional, TypeVar

from loguru import logger

from .models import ArtWork, BluetoothDevice, ConnectionState, ErrorEvent, MediaInfo, WifiInfo

T = TypeVar("T")


class StateStream(Generic[T]):
    """
    A minimal last-value pub/sub holder.
    A subscriber that raises is logged and skipped so it cannot break the
    update path for everybody else.
    """
    def __init__(self, name: str, initial: T):
        self.name = name
        self._value: T = initial
        self._subscribers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, value: T) -> None:
        self._value = value
        for sub in list(self._subscribers):
            try:
                sub(value)
            except Exception as e:
                logger.error(f"stream={self.name} event=subscriber_error reason='{e}'")


class StateStreams:
    """The full set of streams the presentation layer consumes."""

    def __init__(self):
        self.connection_state: StateStream[ConnectionState] = StateStream(
            "connection_state", ConnectionState.DISCONNECTED
        )
        self.media_info: StateStream[Optional[MediaInfo]] = StateStream("media_info", None)
        self.artwork: StateStream[Optional[ArtWork]] = StateStream("artwork", None)
        self.bluetooth_devices: StateStream[List[BluetoothDevice]] = StateStream("bluetooth_devices", [])
        self.wifi_info: StateStream[Optional[WifiInfo]] = StateStream("wifi_info", None)
        self.command_output: StateStream[Optional[str]] = StateStream("command_output", None)
        self.error_message: StateStream[Optional[ErrorEvent]] = StateStream("error_message", None)

    def snapshot(self) -> dict[str, Any]:
        return {
            "connection_state": self.connection_state.value,
            "media_info": self.media_info.value,
            "artwork": self.artwork.value,
            "bluetooth_devices": list(self.bluetooth_devices.value),
            "wifi_info": self.wifi_info.value,
            "command_output": self.command_output.value,
            "error_message": self.error_message.value,
        }
