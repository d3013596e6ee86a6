"""
Land Router

Endpoints for blocks, plots, plot status and bulk layout inserts.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from src.landinventory.api.dependencies import get_engine_service
from src.landinventory.api.schemas import (
    BlockCreate,
    BlockResponse,
    BlockUpdate,
    BookingUpdate,
    OperationResult,
    PlotNumberResponse,
    PlotResponse,
    StatusHistoryEntry,
    StatusUpdate,
)
from src.landinventory.exceptions import NotFoundError
from src.landinventory.services.engine import LandInventoryEngine

router = APIRouter(prefix="/api/v1", tags=["land"])


@router.get("/properties/{property_id}/blocks", response_model=List[BlockResponse])
def list_blocks(property_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    """
    List the blocks of a property with plot counts.

    Args:
        property_id: Property ID
        engine: Inventory engine

    Returns:
        Blocks in layout order
    """
    return engine.list_blocks(property_id)


@router.post(
    "/properties/{property_id}/blocks",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_block(
    property_id: str,
    request: BlockCreate,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """Create a block in a property."""
    return engine.create_block(property_id, request.name, request.description)


@router.post(
    "/properties/{property_id}/blocks/bulk",
    response_model=List[BlockResponse],
    status_code=status.HTTP_201_CREATED,
)
def bulk_insert(
    property_id: str,
    blocks: List[Dict[str, Any]] = Body(...),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """
    Insert blocks with nested plots in one transaction.

    Nothing is inserted if any block or plot is invalid.
    """
    return engine.bulk_insert(property_id, blocks)


@router.get("/properties/{property_id}/blocks/by-name/{name}", response_model=BlockResponse)
def get_block_by_name(
    property_id: str,
    name: str,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """Find a block by name (case-insensitive)."""
    block = engine.get_block_by_name(property_id, name)
    if block is None:
        raise NotFoundError(f"Block '{name}' not found")
    return block


@router.get("/blocks/{block_id}", response_model=BlockResponse)
def get_block(
    block_id: str,
    include_plots: bool = Query(False, description="Include the block's plots"),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.get_block(block_id, include_plots=include_plots)


@router.patch("/blocks/{block_id}", response_model=BlockResponse)
def update_block(
    block_id: str,
    request: BlockUpdate,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.update_block(block_id, request.name, request.description)


@router.delete("/blocks/{block_id}", response_model=OperationResult)
def delete_block(block_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    """
    Delete a block and all its plots.

    Returns success=false when the block does not exist.
    """
    return OperationResult(success=engine.delete_block_safely(block_id))


@router.get("/blocks/{block_id}/plots", response_model=List[PlotResponse])
def list_plots(
    block_id: str,
    plot_status: Optional[str] = Query(None, alias="status", description="Filter by status"),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.list_plots(block_id, plot_status)


@router.get("/blocks/{block_id}/plots/available", response_model=List[PlotResponse])
def list_available_plots(block_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    """Available plots of a block ordered by plot number."""
    return engine.list_available_plots(block_id)


@router.get("/blocks/{block_id}/next-plot-number", response_model=PlotNumberResponse)
def next_plot_number(
    block_id: str,
    prefix: Optional[str] = Query(None, max_length=20),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return PlotNumberResponse(block_id=block_id, plot_number=engine.next_plot_number(block_id, prefix))


@router.post(
    "/blocks/{block_id}/plots",
    response_model=PlotResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_plot(
    block_id: str,
    fields: Dict[str, Any] = Body(...),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """
    Create a plot in a block.

    The plot number is allocated automatically when omitted.
    """
    return engine.create_plot(block_id, fields)


@router.get("/plots/{plot_id}", response_model=PlotResponse)
def get_plot(plot_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    return engine.get_plot(plot_id)


@router.patch("/plots/{plot_id}", response_model=PlotResponse)
def update_plot(
    plot_id: str,
    fields: Dict[str, Any] = Body(...),
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    return engine.update_plot(plot_id, fields)


@router.delete("/plots/{plot_id}", response_model=OperationResult)
def delete_plot(plot_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    return OperationResult(success=engine.delete_plot(plot_id))


@router.put("/plots/{plot_id}/status", response_model=OperationResult)
def update_plot_status(
    plot_id: str,
    request: StatusUpdate,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """Change a plot's status; the transition is recorded in its history."""
    return OperationResult(
        success=engine.update_plot_status(plot_id, request.status, request.actor_id, request.reason)
    )


@router.put("/plots/{plot_id}/booking", response_model=OperationResult)
def update_plot_booking(
    plot_id: str,
    request: BookingUpdate,
    engine: LandInventoryEngine = Depends(get_engine_service),
):
    """Change a plot's status and booking fields."""
    return OperationResult(
        success=engine.update_plot_booking(plot_id, request.status, request.user_id)
    )


@router.get("/plots/{plot_id}/history", response_model=List[StatusHistoryEntry])
def get_status_history(plot_id: str, engine: LandInventoryEngine = Depends(get_engine_service)):
    return engine.get_status_history(plot_id)
