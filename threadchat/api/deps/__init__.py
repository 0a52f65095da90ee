"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_persona_service,
    get_service_cache,
    get_turn_service,
)

__all__ = [
    "get_persona_service",
    "get_service_cache",
    "get_turn_service",
]
