"""
Pydantic Schemas for API Request/Response Models

These schemas define the JSON structure for API endpoints.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel


class BlockCreate(BaseModel):
    """Block creation request."""
    name: str
    description: Optional[str] = None


class BlockUpdate(BaseModel):
    """Block update request; omitted fields stay unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None


class BlockResponse(BaseModel):
    """Block with optional plot counts or nested plots."""
    id: str
    property_id: str
    name: str
    description: Optional[str] = None
    total_plots: Optional[int] = None
    available_plots: Optional[int] = None
    plots: Optional[List["PlotResponse"]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlotResponse(BaseModel):
    """Plot details."""
    id: str
    block_id: str
    plot_number: str
    area: float
    price: Optional[str] = None
    status: str
    description: Optional[str] = None
    booked_by: Optional[str] = None
    booked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


BlockResponse.model_rebuild()


class StatusUpdate(BaseModel):
    """Plot status change request."""
    status: str
    actor_id: Optional[str] = None
    reason: Optional[str] = None


class BookingUpdate(BaseModel):
    """Plot booking change request."""
    status: str
    user_id: Optional[str] = None


class StatusHistoryEntry(BaseModel):
    """One recorded plot status change."""
    id: int
    plot_id: Optional[str] = None
    plot_number: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: str
    changed_by: Optional[str] = None
    change_reason: Optional[str] = None
    changed_at: Optional[datetime] = None


class ConfigurationCreate(BaseModel):
    """Snapshot request."""
    configuration_name: str = "Default Configuration"


class ConfigurationRename(BaseModel):
    """Rename or duplicate request."""
    configuration_name: str


class ConfigurationResponse(BaseModel):
    """Stored layout configuration."""
    id: str
    property_id: str
    configuration_name: str
    is_active: bool
    blocks_data: Optional[List[Dict[str, Any]]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConfigurationCreated(BaseModel):
    """Identifier of a newly stored configuration."""
    id: str


class OperationResult(BaseModel):
    """Outcome of an operation without a resource body."""
    success: bool


class PlotNumberResponse(BaseModel):
    """Next plot number of a block."""
    block_id: str
    plot_number: str


class LandStatistics(BaseModel):
    """Land statistics of one property."""
    property_id: str
    total_blocks: int
    total_plots: int
    available_plots: int
    booked_plots: int
    sold_plots: int
    reserved_plots: int
    blocked_plots: int
    total_area: float
    average_plot_size: float
    min_plot_size: float
    max_plot_size: float


class LandOverviewRow(BaseModel):
    """Summary of one land property."""
    property_id: str
    title: Optional[str] = None
    total_blocks: int
    total_plots: int
    available_plots: int
    booked_plots: int
    sold_plots: int


class HealthCheck(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str
    timestamp: datetime
