"""
Land inventory services: plot numbering, status tracking, live inventory,
statistics, configurations and the engine facade.
"""
from src.landinventory.services.engine import LandInventoryEngine
from src.landinventory.services.statistics import PropertyLandStatistics

__all__ = ["LandInventoryEngine", "PropertyLandStatistics"]
