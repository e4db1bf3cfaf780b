"""zonesync server — FastAPI application around one zone edit session."""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from zoneserver.config import Settings, settings as default_settings
from zoneserver.routers import zones_router
from zonesync import LoadError, SyncClient, ZoneSession


def create_app(
    settings: Optional[Settings] = None,
    session: Optional[ZoneSession] = None,
    client: Optional[httpx.AsyncClient] = None,
    load_on_startup: bool = True,
) -> FastAPI:
    """Build the application.

    Args:
        settings: WFS endpoint and encoding settings.
        session: Edit session to serve (a new empty one by default).
        client: HTTP client for the WFS server.
        load_on_startup: Fetch the zones from the server when the app starts.
    """
    settings = settings or default_settings
    session = session or ZoneSession()
    sync_client = SyncClient(session, settings, client=client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} starting, WFS endpoint {settings.wfs_url}")
        if load_on_startup:
            try:
                await sync_client.load()
            except LoadError as e:
                logger.warning(f"Initial zone load failed: {e}")
        yield
        await sync_client.aclose()
        logger.info(f"{settings.app_name} shutting down...")

    app = FastAPI(
        title="zonesync",
        description="Zone edit tracking and WFS-T synchronization",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.zone_session = session
    app.state.sync_client = sync_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(zones_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "load_state": session.load_state.value}

    return app
