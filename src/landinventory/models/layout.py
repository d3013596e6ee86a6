"""
Layout Data Models

Pydantic models for the block/plot layout payload used by bulk insert and by
configuration snapshots. Payloads are validated here before any database
write, so malformed data never reaches a destructive step.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PayloadValidationError

from src.landinventory.db.models import PlotStatus
from src.landinventory.exceptions import ValidationError

# Largest value the Numeric(12, 2) area column stores
MAX_PLOT_AREA = 9_999_999_999.99


def _price_as_text(value: Any) -> Any:
    """Accept numeric prices and store them as strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class PlotRecord(BaseModel):
    """
    One plot inside a block payload.

    Attributes:
        id: Identifier of the plot when the record was captured (informational)
        plot_number: Plot identifier, unique within the block ignoring case
        area: Plot area, strictly positive and within the column precision
        price: Free-form price string ("15 lakhs", "1.2 crore")
        status: Sale status (case-sensitive)
        description: Optional notes
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: Optional[str] = Field(None, description="Captured plot identifier")
    plot_number: str = Field(..., min_length=1, max_length=50, description="Plot number")
    area: float = Field(..., gt=0, le=MAX_PLOT_AREA, description="Plot area in square feet")
    price: Optional[str] = Field(None, max_length=255, description="Plot price")
    status: PlotStatus = Field(PlotStatus.AVAILABLE, description="Sale status")
    description: Optional[str] = Field(None, description="Plot description")

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> Optional[str]:
        return _price_as_text(value)

    def to_row(self) -> dict:
        """Column values for a new land_plots row (identifier excluded)."""
        return {
            "plot_number": self.plot_number,
            "area": self.area,
            "price": self.price,
            "status": self.status.value,
            "description": self.description,
        }


class BlockRecord(BaseModel):
    """
    One block with its nested plots.

    Attributes:
        id: Identifier of the block when the record was captured (informational)
        name: Block name, unique within the property ignoring case
        description: Optional notes
        plots: Plots in insertion order
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: Optional[str] = Field(None, description="Captured block identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Block name")
    description: Optional[str] = Field(None, description="Block description")
    plots: List[PlotRecord] = Field(default_factory=list, description="Plots in this block")

    @field_validator("plots", mode="before")
    @classmethod
    def default_plots(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("plots")
    @classmethod
    def unique_plot_numbers(cls, plots: List[PlotRecord]) -> List[PlotRecord]:
        """Reject duplicate plot numbers (case-insensitive) within the block."""
        seen = set()
        for plot in plots:
            key = plot.plot_number.lower()
            if key in seen:
                raise ValueError(f"duplicate plot number '{plot.plot_number}' in block")
            seen.add(key)
        return plots


class LandLayout(BaseModel):
    """
    Complete block/plot layout of a property.

    Serialized form is the bare array of blocks stored in
    ``property_land_configurations.blocks_data``.
    """

    blocks: List[BlockRecord] = Field(default_factory=list)

    @field_validator("blocks")
    @classmethod
    def unique_block_names(cls, blocks: List[BlockRecord]) -> List[BlockRecord]:
        """Reject duplicate block names (case-insensitive) within the layout."""
        seen = set()
        for block in blocks:
            key = block.name.lower()
            if key in seen:
                raise ValueError(f"duplicate block name '{block.name}' in layout")
            seen.add(key)
        return blocks

    @classmethod
    def from_payload(cls, payload: Any) -> "LandLayout":
        """
        Build a layout from the JSON array form.

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        if payload is None:
            payload = []
        return cls.model_validate({"blocks": payload})

    def to_payload(self) -> List[dict]:
        """JSON array form of the layout."""
        return self.model_dump(mode="json")["blocks"]

    @property
    def plot_count(self) -> int:
        return sum(len(block.plots) for block in self.blocks)


class PlotUpdate(BaseModel):
    """Partial update of a plot; omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    plot_number: Optional[str] = Field(None, min_length=1, max_length=50)
    area: Optional[float] = Field(None, gt=0, le=MAX_PLOT_AREA)
    price: Optional[str] = Field(None, max_length=255)
    status: Optional[PlotStatus] = None
    description: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> Optional[str]:
        return _price_as_text(value)

    def to_row(self) -> dict:
        """Column values explicitly provided by the caller."""
        row = self.model_dump(exclude_unset=True, mode="json")
        for key in ("plot_number", "area", "status"):
            if key in row and row[key] is None:
                raise ValueError(f"{key} cannot be null")
        return row


def summarize_errors(error: Any) -> str:
    """One-line summary of a pydantic (or FastAPI request) validation error."""
    parts = []
    for item in error.errors()[:5]:
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def parse_layout(payload: Any) -> LandLayout:
    """
    Validate a blocks payload.

    Raises:
        ValidationError: If any block or plot is malformed
    """
    try:
        return LandLayout.from_payload(payload)
    except PayloadValidationError as e:
        raise ValidationError(f"Invalid layout payload: {summarize_errors(e)}", detail=str(e)) from e


def parse_plot(fields: Any) -> PlotRecord:
    """
    Validate the fields of a new plot.

    Raises:
        ValidationError: If a field is missing or invalid
    """
    try:
        return PlotRecord.model_validate(fields)
    except PayloadValidationError as e:
        raise ValidationError(f"Invalid plot: {summarize_errors(e)}", detail=str(e)) from e


def parse_plot_update(fields: Any) -> dict:
    """
    Validate a partial plot update.

    Returns:
        Column values to apply

    Raises:
        ValidationError: If a field is unknown or invalid
    """
    try:
        return PlotUpdate.model_validate(fields).to_row()
    except PayloadValidationError as e:
        raise ValidationError(f"Invalid plot update: {summarize_errors(e)}", detail=str(e)) from e
    except ValueError as e:
        raise ValidationError(f"Invalid plot update: {e}") from e
