"""
FastAPI Dependencies

Provides dependency injection for the inventory engine.
"""
from functools import lru_cache

from src.landinventory.services.engine import LandInventoryEngine


@lru_cache(maxsize=1)
def get_engine_service() -> LandInventoryEngine:
    """
    Inventory engine dependency.

    Returns:
        Engine bound to the application session factory
    """
    return LandInventoryEngine()
