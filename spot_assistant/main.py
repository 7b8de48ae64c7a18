# Role: FastAPI app bootstrap. Loads environment config early, configures logging, registers routers,
# runs the session sweeper for the lifetime of the app, and exposes health/docs endpoints.

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

import spot_assistant.config
spot_assistant.config.load_env()

from spot_assistant.api.chat import router as chat_router
from spot_assistant.api.deps import get_flow_controller
from spot_assistant.api.state import router as state_router
from spot_assistant.logging_setup import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Key line: the background expiry sweep lives exactly as long as the server.
    flow = get_flow_controller()
    flow.start()
    try:
        yield
    finally:
        flow.stop()


app = FastAPI(title="Spot Assistant API", version="0.1.0", lifespan=lifespan)
app.include_router(chat_router)
app.include_router(state_router)


@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Spot Assistant API is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
