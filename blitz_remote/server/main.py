"""
MODULE OVERVIEW:
The FastAPI application for the demo host.

WHAT IS HAPPENING HERE:
A stand-in for the real media/home-automation host so the client, dashboard
and CLI can be exercised on one machine. It serves the same `/ws` endpoint and
frame shapes, plus a `/healthz` probe.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
from loguru import logger

from blitz_remote.server.routes import websocket

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Blitz demo host starting up...")
    yield
    logger.info("Blitz demo host shut down.")


app = FastAPI(
    title="Blitz Demo Host",
    description="Pushes fake player, bluetooth and wifi status to remote-control clients",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(websocket.router, tags=["Remote"])

@app.get("/healthz", tags=["Ops"])
async def health_check():
    return {"status": "ok"}
