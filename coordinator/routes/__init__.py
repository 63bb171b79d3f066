"""API routes package."""

from coordinator.routes.file_routes import router as file_router
from coordinator.routes.merge_routes import router as merge_router

__all__ = ["file_router", "merge_router"]
