"""
CLI entrypoint for the Blitz remote-control client.
"""
import asyncio
from typing import Optional

import typer

from blitz_remote.client.connection_manager import ConnectionManager
from blitz_remote.client.visualizer import Dashboard
from blitz_remote.shared.config import settings
from blitz_remote.shared.logging_setup import configure_logging
from blitz_remote.shared.models import KNOWN_COMMANDS, ConnectionState, ConnectionTarget

app = typer.Typer(help="Blitz remote-control client")

def _target(host: Optional[str], port: Optional[int], path: Optional[str]) -> ConnectionTarget:
    return ConnectionTarget(
        host=host or settings.HOST,
        port=port or settings.PORT,
        path=path if path is not None else settings.PATH,
    )

@app.command()
def monitor(
    host: Optional[str] = typer.Option(None, help="Host address (default: BLITZ_HOST)"),
    port: Optional[int] = typer.Option(None, help="Host port (default: BLITZ_PORT)"),
    path: Optional[str] = typer.Option(None, help="WebSocket path (default: BLITZ_PATH)"),
    duration: float = typer.Option(3600.0, help="How long to keep the dashboard open, in seconds"),
    log_file: str = typer.Option("blitz-remote.log", help="Where to write logs while the dashboard is up"),
):
    """Connect and show live host status in a terminal dashboard."""
    configure_logging(settings.LOG_LEVEL, sink=log_file)
    dashboard = Dashboard(ConnectionManager(), _target(host, port, path))
    try:
        asyncio.run(dashboard.run(duration))
    except KeyboardInterrupt:
        pass

async def _send_once(target: ConnectionTarget, command: str, wait_s: float) -> int:
    manager = ConnectionManager()
    outputs: list[str] = []
    manager.streams.command_output.subscribe(lambda output: outputs.append(output or ""))
    manager.connect(target)
    try:
        if not await manager.wait_for_state(ConnectionState.CONNECTED, timeout=settings.CONNECT_TIMEOUT_S):
            error = manager.streams.error_message.value
            typer.echo(error.message if error else f"Could not connect to {target.url}", err=True)
            return 1
        manager.send(command)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_s
        while not outputs and loop.time() < deadline:
            await asyncio.sleep(0.05)
        for output in outputs:
            typer.echo(output)
        return 0
    finally:
        await manager.shutdown()

@app.command()
def send(
    command: str = typer.Argument(..., help="Command to send, e.g. player_toggle"),
    host: Optional[str] = typer.Option(None, help="Host address (default: BLITZ_HOST)"),
    port: Optional[int] = typer.Option(None, help="Host port (default: BLITZ_PORT)"),
    path: Optional[str] = typer.Option(None, help="WebSocket path (default: BLITZ_PATH)"),
    wait: float = typer.Option(3.0, help="Seconds to wait for command output"),
):
    """Send one command and print whatever output the host sends back."""
    configure_logging(settings.LOG_LEVEL)
    code = asyncio.run(_send_once(_target(host, port, path), command, wait))
    raise typer.Exit(code)

@app.command()
def commands():
    """List the commands the host is known to understand."""
    for name, label in KNOWN_COMMANDS.items():
        typer.echo(f"{name:<15} {label}")

@app.command()
def server(port: Optional[int] = typer.Option(None, help="Port to listen on (default: BLITZ_SERVER_PORT)")):
    """Start the demo host using Uvicorn."""
    import uvicorn
    listen_port = port or settings.SERVER_PORT
    typer.echo(f"Starting demo host on port {listen_port}...")
    uvicorn.run("blitz_remote.server.main:app", host="0.0.0.0", port=listen_port, log_level=settings.LOG_LEVEL.lower())

if __name__ == "__main__":
    app()
