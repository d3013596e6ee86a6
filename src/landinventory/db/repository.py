"""
Repository Pattern for Data Access

Provides CRUD operations and domain-specific queries for all models.
"""
from typing import List, Optional, Dict, Any, Tuple, Type, TypeVar

from sqlalchemy import select, update, delete, func, case, desc, inspect
from sqlalchemy.orm import Session

from src.landinventory.db.models import (
    Property,
    Block,
    Plot,
    PlotStatus,
    PlotStatusHistory,
    LandConfiguration,
)
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class BaseRepository:
    """
    Base repository with common CRUD operations.

    Generic repository that can be extended for specific models.
    """

    def __init__(self, model: Type[T]):
        """
        Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        logger.debug("repository_initialized", model=model.__name__)

    def get_by_id(self, session: Session, id_value: Any) -> Optional[T]:
        """
        Get single record by primary key.

        Args:
            session: Database session
            id_value: Primary key value

        Returns:
            Model instance or None
        """
        result = session.get(self.model, id_value)
        logger.debug(
            "repository_get_by_id",
            model=self.model.__name__,
            id=id_value,
            found=result is not None
        )
        return result

    def create(self, session: Session, **kwargs) -> T:
        """
        Create new record.

        Args:
            session: Database session
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        session.add(instance)
        session.flush()
        logger.info("repository_created", model=self.model.__name__, id=getattr(instance, 'id', None))
        return instance

    def update(self, session: Session, id_value: Any, **kwargs) -> Optional[T]:
        """
        Update existing record.

        Args:
            session: Database session
            id_value: Primary key value
            **kwargs: Fields to update

        Returns:
            Updated model instance or None
        """
        instance = self.get_by_id(session, id_value)
        if not instance:
            logger.warning("repository_update_not_found", model=self.model.__name__, id=id_value)
            return None

        for key, value in kwargs.items():
            setattr(instance, key, value)

        session.flush()
        logger.info("repository_updated", model=self.model.__name__, id=id_value)
        return instance

    def delete(self, session: Session, id_value: Any) -> bool:
        """
        Delete record (hard delete).

        Args:
            session: Database session
            id_value: Primary key value

        Returns:
            True if deleted, False if not found
        """
        instance = self.get_by_id(session, id_value)
        if not instance:
            logger.warning("repository_delete_not_found", model=self.model.__name__, id=id_value)
            return False

        session.delete(instance)
        session.flush()
        logger.info("repository_deleted", model=self.model.__name__, id=id_value)
        return True


class PropertyRepository(BaseRepository):
    """Repository for the owning Property rows."""

    def __init__(self):
        super().__init__(Property)


class BlockRepository(BaseRepository):
    """Repository for Block model with per-property queries."""

    def __init__(self):
        super().__init__(Block)

    def get_by_property(self, session: Session, property_id: str) -> List[Block]:
        """
        Get blocks of a property in layout order.

        Args:
            session: Database session
            property_id: Property ID

        Returns:
            List of blocks
        """
        query = (
            select(Block)
            .where(Block.property_id == property_id)
            .order_by(Block.display_order, Block.created_at, Block.name)
        )
        return session.execute(query).scalars().all()

    def get_by_name(self, session: Session, property_id: str, name: str) -> Optional[Block]:
        """
        Get block by name within a property, ignoring case.

        Args:
            session: Database session
            property_id: Property ID
            name: Block name

        Returns:
            Block instance or None
        """
        query = select(Block).where(
            Block.property_id == property_id,
            func.lower(Block.name) == name.lower()
        )
        return session.execute(query).scalar_one_or_none()

    def get_with_plot_counts(self, session: Session, property_id: str) -> List[Dict[str, Any]]:
        """
        Get blocks of a property with total and available plot counts.

        Args:
            session: Database session
            property_id: Property ID

        Returns:
            List of dicts (block, total_plots, available_plots)
        """
        query = (
            select(
                Block,
                func.count(Plot.id).label("total_plots"),
                func.count(case((Plot.status == PlotStatus.AVAILABLE.value, 1))).label("available_plots"),
            )
            .outerjoin(Plot, Plot.block_id == Block.id)
            .where(Block.property_id == property_id)
            .group_by(Block.id)
            .order_by(Block.display_order, Block.created_at, Block.name)
        )
        return [
            {"block": block, "total_plots": total, "available_plots": available}
            for block, total, available in session.execute(query).all()
        ]

    def next_display_order(self, session: Session, property_id: str) -> int:
        """Position for a block appended to the property layout."""
        current = session.scalar(
            select(func.max(Block.display_order)).where(Block.property_id == property_id)
        )
        return 0 if current is None else current + 1

    def delete_by_property(self, session: Session, property_id: str) -> int:
        """
        Delete every block of a property.

        Plots must already be gone; see PlotRepository.delete_by_property.

        Args:
            session: Database session
            property_id: Property ID

        Returns:
            Number of blocks deleted
        """
        result = session.execute(
            delete(Block)
            .where(Block.property_id == property_id)
            .execution_options(synchronize_session="fetch")
        )
        logger.info("blocks_deleted_by_property", property_id=property_id, count=result.rowcount)
        return result.rowcount


class PlotRepository(BaseRepository):
    """Repository for Plot model."""

    def __init__(self):
        super().__init__(Plot)

    def get_by_block(
        self,
        session: Session,
        block_id: str,
        status: Optional[str] = None
    ) -> List[Plot]:
        """
        Get plots of a block in layout order.

        Args:
            session: Database session
            block_id: Block ID
            status: Optional status filter

        Returns:
            List of plots
        """
        query = select(Plot).where(Plot.block_id == block_id)
        if status:
            query = query.where(Plot.status == status)
        query = query.order_by(Plot.display_order, Plot.created_at, Plot.plot_number)
        return session.execute(query).scalars().all()

    def get_available_by_block(self, session: Session, block_id: str) -> List[Plot]:
        """
        Get available plots of a block ordered by plot number.

        Args:
            session: Database session
            block_id: Block ID

        Returns:
            List of available plots
        """
        query = (
            select(Plot)
            .where(Plot.block_id == block_id, Plot.status == PlotStatus.AVAILABLE.value)
            .order_by(Plot.plot_number)
        )
        return session.execute(query).scalars().all()

    def get_plot_numbers(self, session: Session, block_id: str) -> List[str]:
        """
        Get every plot number used in a block.

        Args:
            session: Database session
            block_id: Block ID

        Returns:
            List of plot numbers
        """
        query = select(Plot.plot_number).where(Plot.block_id == block_id)
        return session.execute(query).scalars().all()

    def count_by_block(self, session: Session, block_id: str) -> Tuple[int, int]:
        """
        Count plots of a block.

        Args:
            session: Database session
            block_id: Block ID

        Returns:
            Tuple of (total plots, available plots)
        """
        query = select(
            func.count(Plot.id),
            func.count(case((Plot.status == PlotStatus.AVAILABLE.value, 1))),
        ).where(Plot.block_id == block_id)
        total, available = session.execute(query).one()
        return total, available

    def next_display_order(self, session: Session, block_id: str) -> int:
        """Position for a plot appended to the block."""
        current = session.scalar(
            select(func.max(Plot.display_order)).where(Plot.block_id == block_id)
        )
        return 0 if current is None else current + 1

    def delete_by_block(self, session: Session, block_id: str) -> int:
        """
        Delete every plot of a block.

        Args:
            session: Database session
            block_id: Block ID

        Returns:
            Number of plots deleted
        """
        result = session.execute(
            delete(Plot)
            .where(Plot.block_id == block_id)
            .execution_options(synchronize_session="fetch")
        )
        logger.info("plots_deleted_by_block", block_id=block_id, count=result.rowcount)
        return result.rowcount

    def delete_by_property(self, session: Session, property_id: str) -> int:
        """
        Delete every plot belonging to blocks of a property.

        Args:
            session: Database session
            property_id: Property ID

        Returns:
            Number of plots deleted
        """
        block_ids = select(Block.id).where(Block.property_id == property_id)
        result = session.execute(
            delete(Plot)
            .where(Plot.block_id.in_(block_ids))
            .execution_options(synchronize_session="fetch")
        )
        logger.info("plots_deleted_by_property", property_id=property_id, count=result.rowcount)
        return result.rowcount

    def set_booking(
        self,
        session: Session,
        plot_id: str,
        status: str,
        booked_by: Optional[str],
        booked_at: Any
    ) -> int:
        """
        Set status and booking fields in one UPDATE.

        Args:
            session: Database session
            plot_id: Plot ID
            status: New status
            booked_by: Acting user (None clears)
            booked_at: Booking timestamp (None clears)

        Returns:
            Number of rows affected
        """
        result = session.execute(
            update(Plot)
            .where(Plot.id == plot_id)
            .values(status=status, booked_by=booked_by, booked_at=booked_at)
            .execution_options(synchronize_session="fetch")
        )
        # Reload every column of an already loaded plot on next access
        loaded = session.identity_map.get(inspect(Plot).identity_key_from_primary_key((plot_id,)))
        if loaded is not None:
            session.expire(loaded)
        return result.rowcount


class StatusHistoryRepository(BaseRepository):
    """Repository for PlotStatusHistory (append-only)."""

    def __init__(self):
        super().__init__(PlotStatusHistory)

    def get_by_plot(self, session: Session, plot_id: str) -> List[PlotStatusHistory]:
        """
        Get status history for a plot, newest first.

        Args:
            session: Database session
            plot_id: Plot ID

        Returns:
            List of history entries
        """
        query = (
            select(PlotStatusHistory)
            .where(PlotStatusHistory.plot_id == plot_id)
            .order_by(desc(PlotStatusHistory.changed_at), desc(PlotStatusHistory.id))
        )
        return session.execute(query).scalars().all()


class ConfigurationRepository(BaseRepository):
    """Repository for LandConfiguration snapshots."""

    def __init__(self):
        super().__init__(LandConfiguration)

    def get_by_property(self, session: Session, property_id: str) -> List[LandConfiguration]:
        """
        Get configurations of a property, newest first.

        Args:
            session: Database session
            property_id: Property ID

        Returns:
            List of configurations
        """
        query = (
            select(LandConfiguration)
            .where(LandConfiguration.property_id == property_id)
            .order_by(desc(LandConfiguration.created_at))
        )
        return session.execute(query).scalars().all()

    def deactivate_all(
        self,
        session: Session,
        property_id: str,
        except_id: Optional[str] = None
    ) -> int:
        """
        Clear the active flag on a property's configurations.

        Args:
            session: Database session
            property_id: Property ID
            except_id: Configuration to leave untouched

        Returns:
            Number of configurations deactivated
        """
        query = update(LandConfiguration).where(
            LandConfiguration.property_id == property_id,
            LandConfiguration.is_active == True
        )
        if except_id is not None:
            query = query.where(LandConfiguration.id != except_id)

        result = session.execute(
            query.values(is_active=False).execution_options(synchronize_session="fetch")
        )
        logger.info("configurations_deactivated", property_id=property_id, count=result.rowcount)
        return result.rowcount
