"""
MODULE OVERVIEW:
The inbound frame decoder and dispatcher.

WHAT IS HAPPENING HERE:
The host pushes JSON text frames tagged with a `status` field. We read the tag,
validate the frame against the matching Pydantic model and publish the payload
to its state stream. Unknown tags are dropped silently. A frame that fails to
parse or validate becomes exactly one ErrorEvent; the socket keeps running and
the next frame is decoded as if nothing happened.
"""

import json
from typing import Union

from loguru import logger
from pydantic import ValidationError

from blitz_remote.shared.errors import FrameDecodeError
from blitz_remote.shared.events import StateStreams
from blitz_remote.shared.models import (
    FRAME_TYPES,
    ArtWork,
    BluetoothFrame,
    CommandOutputFrame,
    ErrorEvent,
    PlayerFrame,
    UnknownFrame,
    WifiFrame,
)

Frame = Union[PlayerFrame, BluetoothFrame, WifiFrame, CommandOutputFrame, UnknownFrame]


def decode_frame(raw: str) -> Frame:
    """Parse one text frame into its variant. Raises FrameDecodeError."""
    try:
        data = json.loads(raw)
    # ValueError also covers oversized integer literals; deep nesting raises RecursionError.
    except (ValueError, RecursionError) as e:
        raise FrameDecodeError(f"invalid JSON: {e}", raw, e) from e

    if not isinstance(data, dict):
        raise FrameDecodeError(f"expected a JSON object, got {type(data).__name__}", raw)

    status = data.get("status")
    model = FRAME_TYPES.get(status) if isinstance(status, str) else None
    if model is None:
        return UnknownFrame(status=status if isinstance(status, str) else None)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise FrameDecodeError(f"invalid '{status}' frame: {errors}", raw, e) from e


class MessageDecoder:
    def __init__(self, streams: StateStreams):
        self.streams = streams

    def dispatch(self, raw: str) -> None:
        try:
            frame = decode_frame(raw)
        except FrameDecodeError as e:
            logger.warning(f"event=parse_error reason='{e}' frame={raw!r}")
            self.streams.error_message.publish(ErrorEvent(message=f"Parse error: {e} (frame: {raw})"))
            return

        if isinstance(frame, PlayerFrame):
            self.streams.media_info.publish(frame.output)
            self.streams.artwork.publish(ArtWork(url=frame.artwork))
        elif isinstance(frame, BluetoothFrame):
            self.streams.bluetooth_devices.publish([d for d in frame.bluetooth if d.connected])
        elif isinstance(frame, WifiFrame):
            self.streams.wifi_info.publish(frame.wifi)
        elif isinstance(frame, CommandOutputFrame):
            self.streams.command_output.publish(frame.output)
        else:
            logger.debug(f"event=frame_ignored status={frame.status}")
