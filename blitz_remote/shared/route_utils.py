import uuid
import asyncio
from typing import Any, AsyncGenerator, Awaitable, Callable
from loguru import logger

def extract_client_id(client_id: str | None) -> str:
    """
    If the caller provided a client_id, use it.
    If not, generate a short readable one like 'client-a3f2'.
    """
    if client_id:
        return client_id
    return f"client-{str(uuid.uuid4())[:4]}"

def log_connection(event: str, client_id: str, extra: dict | None = None) -> None:
    """
    Single structured log entry per connect/disconnect.
    Writes: event, client_id, and any extra fields.
    """
    log_str = f"event={event} client_id={client_id}"
    for k, v in (extra or {}).items():
        log_str += f" {k}={v}"
    logger.info(log_str)

async def pump_frames(
    send_fn: Callable[[dict[str, Any]], Awaitable[None]],
    generator: AsyncGenerator[dict[str, Any], None],
) -> None:
    """
    Server-side push loop: forwards every frame the generator yields through
    `send_fn` until the generator ends or the task is cancelled (client gone).
    """
    try:
        async for frame in generator:
            await send_fn(frame)
    except asyncio.CancelledError:
        pass
    finally:
        await generator.aclose()
