"""
SQLAlchemy ORM Models

Land inventory schema: properties own blocks, blocks own plots, plot status
changes are audited, and property layouts are captured as configurations.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    String, Integer, BigInteger, Numeric, DateTime, Boolean, Text,
    ForeignKey, CheckConstraint, Index, func, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.landinventory.db.base import (
    Base, TimestampMixin, UUIDPrimaryKeyMixin, JSONDocument
)


class PlotStatus(str, Enum):
    """Sale status of a plot. Any status may transition to any other."""

    AVAILABLE = "available"
    BOOKED = "booked"
    SOLD = "sold"
    RESERVED = "reserved"
    BLOCKED = "blocked"

    @classmethod
    def values(cls) -> list:
        return [status.value for status in cls]


# Statuses that record who booked the plot and when
BOOKING_STATUSES = (PlotStatus.BOOKED.value, PlotStatus.SOLD.value)

_STATUS_CHECK = "status IN ({})".format(
    ", ".join(f"'{value}'" for value in PlotStatus.values())
)


class Property(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Owning property row.

    Property details are managed elsewhere; this table exists so blocks and
    configurations can reference a property and cascade when it is removed.
    """
    __tablename__ = "properties"

    title: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Listing title"
    )
    property_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="land",
        server_default="land",
        comment="Property type (land, apartment, villa, ...)"
    )

    blocks: Mapped[list["Block"]] = relationship(
        "Block",
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Block.display_order"
    )
    configurations: Mapped[list["LandConfiguration"]] = relationship(
        "LandConfiguration",
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        Index("idx_properties_property_type", "property_type"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, type={self.property_type})>"


class Block(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Named subdivision of a land property (e.g. Block A, Phase 1)."""
    __tablename__ = "land_blocks"

    property_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        comment="Reference to the property this block belongs to"
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Name of the block (e.g., Block A, Phase 1)"
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Optional description of the block"
    )
    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Position of the block within the property layout"
    )

    property: Mapped["Property"] = relationship("Property", back_populates="blocks")
    plots: Mapped[list["Plot"]] = relationship(
        "Plot",
        back_populates="block",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Plot.display_order"
    )

    __table_args__ = (
        Index("idx_land_blocks_property_id", "property_id"),
        Index("idx_land_blocks_property_created", "property_id", "created_at"),
    )

    def to_dict(self, include_plots: bool = False) -> dict:
        """Serialize block (optionally with its plots) to a JSON-ready dict."""
        data = {
            "id": self.id,
            "property_id": self.property_id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_plots:
            data["plots"] = [plot.to_dict() for plot in self.plots]
        return data

    def __repr__(self) -> str:
        return f"<Block(id={self.id}, name={self.name})>"


class Plot(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Individually sellable unit inside a block."""
    __tablename__ = "land_plots"

    block_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("land_blocks.id", ondelete="CASCADE"),
        nullable=False,
        comment="Reference to the block this plot belongs to"
    )
    plot_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Plot identifier within the block (e.g., P001, P002)"
    )
    area: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False),
        nullable=False,
        comment="Plot area in square feet"
    )
    price: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Plot price in readable format (e.g., 15 lakhs, 1.2 crore)"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PlotStatus.AVAILABLE.value,
        server_default=PlotStatus.AVAILABLE.value,
        active_history=True,  # old value is needed by the status audit hook
        comment="Current sale status of the plot"
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Optional description or special features of the plot"
    )
    booked_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="User who booked or bought the plot"
    )
    booked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the plot was booked or sold"
    )
    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Position of the plot within its block"
    )

    block: Mapped["Block"] = relationship("Block", back_populates="plots")
    status_history: Mapped[list["PlotStatusHistory"]] = relationship(
        "PlotStatusHistory",
        back_populates="plot",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("area > 0", name="check_plot_area_positive"),
        CheckConstraint(_STATUS_CHECK, name="check_plot_status_valid"),
        Index("idx_land_plots_block_id", "block_id"),
        Index("idx_land_plots_status", "status"),
        Index("idx_land_plots_block_status", "block_id", "status"),
    )

    def to_dict(self) -> dict:
        """Serialize plot to a JSON-ready dict."""
        return {
            "id": self.id,
            "block_id": self.block_id,
            "plot_number": self.plot_number,
            "area": float(self.area) if self.area is not None else None,
            "price": self.price,
            "status": self.status,
            "description": self.description,
            "booked_by": self.booked_by,
            "booked_at": self.booked_at.isoformat() if self.booked_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Plot(id={self.id}, number={self.plot_number}, status={self.status})>"


class PlotStatusHistory(Base):
    """Append-only audit record of one plot status change."""
    __tablename__ = "land_plot_status_history"

    # Monotonic; breaks ties between changes sharing a changed_at timestamp
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    # Nulled when the plot is deleted so the record survives
    plot_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("land_plots.id", ondelete="SET NULL"),
        nullable=True,
        comment="Reference to the plot that had its status changed"
    )

    # Denormalized for readability after plot deletion
    plot_number: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Plot number at the time of the change"
    )

    previous_status: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Previous status of the plot"
    )
    new_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="New status of the plot"
    )
    changed_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="User who made the status change"
    )
    change_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Reason for the status change"
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the change happened"
    )

    plot: Mapped[Optional["Plot"]] = relationship("Plot", back_populates="status_history")

    __table_args__ = (
        Index("idx_land_plot_status_history_plot_id", "plot_id"),
        Index("idx_land_plot_status_history_changed_at", "changed_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plot_id": self.plot_id,
            "plot_number": self.plot_number,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "change_reason": self.change_reason,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        }

    def __repr__(self) -> str:
        return f"<PlotStatusHistory(plot_id={self.plot_id}, {self.previous_status}->{self.new_status})>"


class LandConfiguration(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Named point-in-time snapshot of a property's block/plot layout."""
    __tablename__ = "property_land_configurations"

    property_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        comment="Reference to the property this configuration belongs to"
    )
    configuration_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="Default Configuration",
        comment="Name of the configuration (e.g., Phase 1 Layout, Master Plan)"
    )
    blocks_data: Mapped[list] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
        comment="Complete blocks and plots structure"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this configuration is currently active"
    )

    property: Mapped["Property"] = relationship("Property", back_populates="configurations")

    __table_args__ = (
        Index("idx_property_land_configurations_property_id", "property_id"),
    )

    def to_dict(self, include_payload: bool = True) -> dict:
        data = {
            "id": self.id,
            "property_id": self.property_id,
            "configuration_name": self.configuration_name,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_payload:
            data["blocks_data"] = self.blocks_data
        return data

    def __repr__(self) -> str:
        return f"<LandConfiguration(id={self.id}, name={self.configuration_name}, active={self.is_active})>"


# Case-insensitive uniqueness and the single-active-configuration rule are
# expression/partial indexes, declared against the mapped columns.
Index(
    "idx_land_blocks_unique_name_per_property",
    Block.property_id,
    func.lower(Block.name),
    unique=True,
)
Index(
    "idx_land_plots_unique_plot_per_block",
    Plot.block_id,
    func.lower(Plot.plot_number),
    unique=True,
)
Index(
    "idx_property_land_configurations_unique_active",
    LandConfiguration.property_id,
    unique=True,
    postgresql_where=LandConfiguration.is_active == True,
    sqlite_where=LandConfiguration.is_active == True,
)
