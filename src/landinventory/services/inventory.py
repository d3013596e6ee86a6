"""
Live inventory service.

Block and plot reads and writes against the current layout of a property,
including the bulk operations (bulk insert, safe delete) and the two status
update paths that feed the status history.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from config.settings import settings
from src.landinventory.db.models import (
    BOOKING_STATUSES,
    Block,
    Plot,
    PlotStatus,
    Property,
)
from src.landinventory.db.repository import (
    BlockRepository,
    PlotRepository,
    PropertyRepository,
    StatusHistoryRepository,
)
from src.landinventory.db.utils import lock_row, translate_integrity_error
from src.landinventory.exceptions import ConflictError, NotFoundError, ValidationError
from src.landinventory.models.layout import (
    LandLayout,
    parse_layout,
    parse_plot,
    parse_plot_update,
)
from src.landinventory.services.plot_numbering import PlotNumberAllocator
from src.landinventory.services.status_tracker import status_tracker
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

BLOCK_NAME_MAX_LENGTH = 100


def validate_status(status: Any) -> str:
    """
    Check a status value against the plot status enumeration (case-sensitive).

    Raises:
        ValidationError: If the status is unknown
    """
    if status not in PlotStatus.values():
        raise ValidationError(
            f"Invalid plot status '{status}'. Expected one of: {', '.join(PlotStatus.values())}"
        )
    return status


def _clean_block_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Block name is required")
    if len(name) > BLOCK_NAME_MAX_LENGTH:
        raise ValidationError(f"Block name must be at most {BLOCK_NAME_MAX_LENGTH} characters")
    return name


class LiveInventoryService:
    """Block/plot operations inside one caller-owned transaction."""

    def __init__(self, session: Session):
        self.session = session
        self.properties = PropertyRepository()
        self.blocks = BlockRepository()
        self.plots = PlotRepository()
        self.history = StatusHistoryRepository()
        self.allocator = PlotNumberAllocator(self.plots)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def require_property(self, property_id: str) -> Property:
        prop = self.properties.get_by_id(self.session, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def require_block(self, block_id: str) -> Block:
        block = self.blocks.get_by_id(self.session, block_id)
        if block is None:
            raise NotFoundError(f"Block {block_id} not found")
        return block

    def require_plot(self, plot_id: str) -> Plot:
        plot = self.plots.get_by_id(self.session, plot_id)
        if plot is None:
            raise NotFoundError(f"Plot {plot_id} not found")
        return plot

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def create_block(self, property_id: str, name: str, description: Optional[str] = None) -> Block:
        """
        Create a block at the end of the property layout.

        Args:
            property_id: Owning property ID
            name: Block name (unique within the property, ignoring case)
            description: Optional description

        Returns:
            Created block

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: If the name is empty, too long or already used
        """
        name = _clean_block_name(name)
        self.require_property(property_id)

        if self.blocks.get_by_name(self.session, property_id, name) is not None:
            raise ValidationError(f"Block '{name}' already exists for this property")

        try:
            block = self.blocks.create(
                self.session,
                property_id=property_id,
                name=name,
                description=description,
                display_order=self.blocks.next_display_order(self.session, property_id),
            )
        except IntegrityError as e:
            raise translate_integrity_error(e, f"Block '{name}' already exists for this property") from e

        logger.info("block_created", block_id=block.id, property_id=property_id, name=name)
        return block

    def update_block(
        self,
        block_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> Block:
        """Rename a block and/or change its description."""
        block = self.require_block(block_id)

        if name is not None:
            name = _clean_block_name(name)
            existing = self.blocks.get_by_name(self.session, block.property_id, name)
            if existing is not None and existing.id != block.id:
                raise ValidationError(f"Block '{name}' already exists for this property")
            block.name = name
        if description is not None:
            block.description = description

        try:
            self.session.flush()
        except IntegrityError as e:
            raise translate_integrity_error(e, "Block update violates a uniqueness rule") from e

        logger.info("block_updated", block_id=block_id)
        return block

    def list_blocks(self, property_id: str) -> List[Dict[str, Any]]:
        """Blocks of a property in layout order, each with total/available plot counts."""
        self.require_property(property_id)
        return [
            {**row["block"].to_dict(), "total_plots": row["total_plots"], "available_plots": row["available_plots"]}
            for row in self.blocks.get_with_plot_counts(self.session, property_id)
        ]

    def get_block_by_name(self, property_id: str, name: str) -> Optional[Dict[str, Any]]:
        """Block matching ``name`` (ignoring case) with its plot counts, or None."""
        block = self.blocks.get_by_name(self.session, property_id, name)
        if block is None:
            return None
        total, available = self.plots.count_by_block(self.session, block.id)
        return {**block.to_dict(), "total_plots": total, "available_plots": available}

    def safe_delete_block(self, block_id: str) -> bool:
        """
        Delete a block and all its plots.

        Plots are removed first, then the block. A missing block is a no-op.

        Args:
            block_id: Block ID

        Returns:
            True if the block existed and was deleted
        """
        block = lock_row(self.session, Block, block_id)
        if block is None:
            logger.info("block_delete_skipped", block_id=block_id, reason="not_found")
            return False

        plots_deleted = self.plots.delete_by_block(self.session, block_id)
        self.session.delete(block)
        self.session.flush()

        logger.info("block_deleted", block_id=block_id, plots_deleted=plots_deleted)
        return True

    # ------------------------------------------------------------------
    # Plots
    # ------------------------------------------------------------------

    def create_plot(self, block_id: str, fields: Dict[str, Any], prefix: Optional[str] = None) -> Plot:
        """
        Create a plot in a block.

        When ``plot_number`` is omitted it is allocated from the block's
        existing numbers. The block row is locked for the allocation and
        every attempt is inserted in a SAVEPOINT, so a number taken by a
        concurrent writer is re-allocated instead of failing the transaction.

        Args:
            block_id: Block ID
            fields: Plot attributes (plot_number, area, price, status, description)
            prefix: Plot number prefix for allocation

        Returns:
            Created plot

        Raises:
            NotFoundError: If the block does not exist
            ValidationError: If a field is invalid or the plot number is taken
            ConflictError: If allocation kept colliding with concurrent writers
        """
        fields = dict(fields or {})
        block = lock_row(self.session, Block, block_id)
        if block is None:
            raise NotFoundError(f"Block {block_id} not found")

        plot_number = fields.get("plot_number")
        if isinstance(plot_number, str):
            plot_number = plot_number.strip()

        if plot_number:
            record = parse_plot(fields)
            existing = {number.lower() for number in self.plots.get_plot_numbers(self.session, block_id)}
            if record.plot_number.lower() in existing:
                raise ValidationError(f"Plot number '{record.plot_number}' already exists in this block")
            try:
                plot = self.plots.create(
                    self.session,
                    block_id=block_id,
                    display_order=self.plots.next_display_order(self.session, block_id),
                    **record.to_row()
                )
            except (IntegrityError, DataError) as e:
                raise translate_integrity_error(e, "Plot violates a uniqueness or value rule") from e
            logger.info("plot_created", plot_id=plot.id, block_id=block_id, plot_number=plot.plot_number)
            return plot

        fields["plot_number"] = self.allocator.next_plot_number(self.session, block_id, prefix)
        record = parse_plot(fields)

        for attempt in range(1, settings.plot_number_max_retries + 1):
            plot = Plot(
                block_id=block_id,
                display_order=self.plots.next_display_order(self.session, block_id),
                **record.to_row()
            )
            try:
                with self.session.begin_nested():
                    self.session.add(plot)
            except IntegrityError:
                logger.warning(
                    "plot_number_collision",
                    block_id=block_id,
                    plot_number=record.plot_number,
                    attempt=attempt
                )
                next_number = self.allocator.next_plot_number(self.session, block_id, prefix)
                record = record.model_copy(update={"plot_number": next_number})
                continue

            logger.info(
                "plot_created",
                plot_id=plot.id,
                block_id=block_id,
                plot_number=plot.plot_number,
                allocated=True
            )
            return plot

        raise ConflictError(
            "Could not allocate a unique plot number, please retry",
            detail=f"block_id={block_id} attempts={settings.plot_number_max_retries}"
        )

    def next_plot_number(self, block_id: str, prefix: Optional[str] = None) -> str:
        self.require_block(block_id)
        return self.allocator.next_plot_number(self.session, block_id, prefix)

    def list_plots(self, block_id: str, status: Optional[str] = None) -> List[Plot]:
        self.require_block(block_id)
        if status is not None:
            validate_status(status)
        return self.plots.get_by_block(self.session, block_id, status=status)

    def list_available_plots(self, block_id: str) -> List[Plot]:
        self.require_block(block_id)
        return self.plots.get_available_by_block(self.session, block_id)

    def update_plot(self, plot_id: str, fields: Dict[str, Any]) -> Plot:
        """
        Apply a partial update to a plot.

        A status change made here is audited by the flush hook (no actor).

        Raises:
            NotFoundError: If the plot does not exist
            ValidationError: If a field is invalid or the new plot number is taken
        """
        values = parse_plot_update(fields or {})
        plot = self.require_plot(plot_id)

        new_number = values.get("plot_number")
        if new_number is not None and new_number.lower() != plot.plot_number.lower():
            existing = {number.lower() for number in self.plots.get_plot_numbers(self.session, plot.block_id)}
            if new_number.lower() in existing:
                raise ValidationError(f"Plot number '{new_number}' already exists in this block")

        for key, value in values.items():
            setattr(plot, key, value)

        try:
            self.session.flush()
        except (IntegrityError, DataError) as e:
            raise translate_integrity_error(e, "Plot update violates a uniqueness or value rule") from e
        status_tracker.record_pending(self.session)

        logger.info("plot_updated", plot_id=plot_id, fields=sorted(values))
        return plot

    def delete_plot(self, plot_id: str) -> bool:
        """Delete one plot; False if it does not exist."""
        deleted = self.plots.delete(self.session, plot_id)
        if deleted:
            logger.info("plot_deleted", plot_id=plot_id)
        return deleted

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_plot_status(
        self,
        plot_id: str,
        status: str,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None
    ) -> bool:
        """
        Set a plot's status and audit the transition.

        Booking fields are left untouched.

        Args:
            plot_id: Plot ID
            status: New status
            actor_id: Acting user
            reason: Free-text reason

        Returns:
            True if the plot exists

        Raises:
            ValidationError: If the status is unknown
        """
        validate_status(status)
        plot = lock_row(self.session, Plot, plot_id)
        if plot is None:
            return False

        previous = plot.status
        if previous == status:
            return True

        status_tracker.mark_audited(self.session, plot.id)
        plot.status = status
        self.session.flush()
        status_tracker.record(self.session, plot, previous, status, changed_by=actor_id, reason=reason)

        logger.info("plot_status_updated", plot_id=plot_id, previous_status=previous, new_status=status)
        return True

    def update_plot_booking(self, plot_id: str, status: str, user_id: Optional[str] = None) -> bool:
        """
        Set a plot's status together with its booking fields.

        ``booked``/``sold`` record the user and the current time; any other
        status clears both.

        Args:
            plot_id: Plot ID
            status: New status
            user_id: Booking user

        Returns:
            True if a row was affected

        Raises:
            ValidationError: If the status is unknown
        """
        validate_status(status)
        plot = lock_row(self.session, Plot, plot_id)
        if plot is None:
            return False

        previous = plot.status
        if status in BOOKING_STATUSES:
            booked_by, booked_at = user_id, datetime.now(timezone.utc)
        else:
            booked_by, booked_at = None, None

        affected = self.plots.set_booking(self.session, plot_id, status, booked_by, booked_at)
        if affected:
            status_tracker.record(self.session, plot, previous, status, changed_by=user_id)
            logger.info(
                "plot_booking_updated",
                plot_id=plot_id,
                previous_status=previous,
                new_status=status,
                booked_by=booked_by
            )
        return affected > 0

    def get_status_history(self, plot_id: str) -> List[Any]:
        """Status history of a plot, newest first (empty when auditing is unavailable)."""
        self.require_plot(plot_id)
        if not status_tracker.has_capability(self.session):
            return []
        return self.history.get_by_plot(self.session, plot_id)

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def insert_layout(self, property_id: str, layout: LandLayout) -> List[Block]:
        """
        Insert a validated layout: each block, then its plots, in payload order.

        Args:
            property_id: Owning property ID
            layout: Validated layout

        Returns:
            Created blocks carrying their plots

        Raises:
            ValidationError: If a block name is already used by the property
        """
        base_order = self.blocks.next_display_order(self.session, property_id)
        created = []
        for position, record in enumerate(layout.blocks):
            if self.blocks.get_by_name(self.session, property_id, record.name) is not None:
                raise ValidationError(f"Block '{record.name}' already exists for this property")

            block = Block(
                property_id=property_id,
                name=record.name,
                description=record.description,
                display_order=base_order + position,
            )
            block.plots = [
                Plot(display_order=plot_position, **plot_record.to_row())
                for plot_position, plot_record in enumerate(record.plots)
            ]
            self.session.add(block)
            created.append(block)

        try:
            self.session.flush()
        except (IntegrityError, DataError) as e:
            raise translate_integrity_error(e, "Layout violates a uniqueness or value rule") from e

        logger.info(
            "layout_inserted",
            property_id=property_id,
            blocks=len(created),
            plots=layout.plot_count
        )
        return created

    def bulk_insert(self, property_id: str, blocks_payload: Any) -> List[Block]:
        """
        Validate and insert a blocks payload for a property.

        Args:
            property_id: Owning property ID
            blocks_payload: Array of ``{name, description, plots: [...]}``

        Returns:
            Created blocks carrying their plots

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: If the payload is malformed or collides with existing rows
        """
        layout = parse_layout(blocks_payload)
        self.require_property(property_id)
        return self.insert_layout(property_id, layout)
