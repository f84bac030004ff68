"""
MODULE OVERVIEW:
The demo host's WebSocket route.

WHAT IS HAPPENING HERE:
Every connection gets its own DemoHost. A background task pushes status frames
while the receive loop answers `{"command": ...}` frames with `command_output`.
Anything that is not a JSON object with a string `command` is answered with a
`command_output` explaining the rejection, mirroring how the real host behaves.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from loguru import logger
import asyncio
import json

from blitz_remote.server.dummy_data import DemoHost, status_generator
from blitz_remote.shared.config import settings
from blitz_remote.shared.route_utils import extract_client_id, log_connection, pump_frames

router = APIRouter()

def parse_command(text: str) -> str | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    command = data.get("command") if isinstance(data, dict) else None
    return command if isinstance(command, str) else None

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    client_id: str | None = Query(None)
):
    cid = extract_client_id(client_id)
    await websocket.accept()
    log_connection("connect", cid)

    host = DemoHost()
    push_task = asyncio.create_task(
        pump_frames(websocket.send_json, status_generator(host, settings.DEMO_PUSH_INTERVAL_S))
    )

    try:
        while True:
            text_data = await websocket.receive_text()
            logger.debug(f"client_id={cid} sent: {text_data}")
            command = parse_command(text_data)
            if command is None:
                await websocket.send_json({"status": "command_output", "output": f"Rejected frame: {text_data}"})
                continue
            await websocket.send_json(host.command_output_frame(command))
    except WebSocketDisconnect:
        pass
    finally:
        push_task.cancel()
        await asyncio.gather(push_task, return_exceptions=True)
        log_connection("disconnect", cid)
