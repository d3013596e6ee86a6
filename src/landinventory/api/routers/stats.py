"""
Statistics Router

Endpoints for land statistics and the portfolio overview.
"""
from typing import List

from fastapi import APIRouter, Depends

from src.landinventory.api.dependencies import get_engine_service
from src.landinventory.api.schemas import LandOverviewRow, LandStatistics
from src.landinventory.services.engine import LandInventoryEngine

router = APIRouter(prefix="/api/v1/stats", tags=["statistics"])


@router.get("/properties/{property_id}", response_model=LandStatistics)
def get_property_statistics(
    property_id: str,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """
    Get block/plot counts and area statistics for a property.

    Args:
        property_id: Property ID
        engine: Inventory engine

    Returns:
        Land statistics (all zeros for a property without blocks)
    """
    return engine.get_statistics(property_id).to_dict()


@router.get("/overview", response_model=List[LandOverviewRow])
def get_land_overview(engine: LandInventoryEngine = Depends(get_engine_service)):
    """Summary counts for every land property."""
    return engine.get_land_overview()
