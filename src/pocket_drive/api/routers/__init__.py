"""API routers."""

from pocket_drive.api.routers.item_router import router as item_router

__all__ = ["item_router"]
