"""API routers."""

from zoneserver.routers.zones import router as zones_router

__all__ = ["zones_router"]
