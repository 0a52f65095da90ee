"""API routers."""

from .chat import router as chat_router
from .health import router as health_router
from .personas import router as personas_router

__all__ = [
    "chat_router",
    "health_router",
    "personas_router",
]
