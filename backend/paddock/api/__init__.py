"""API routers."""

from paddock.api.backfill import router as backfill_router
from paddock.api.config import router as config_router
from paddock.api.horses import router as horses_router
from paddock.api.races import router as races_router

__all__ = [
    "races_router",
    "horses_router",
    "backfill_router",
    "config_router",
]
