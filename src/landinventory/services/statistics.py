"""
Statistics aggregation over the live inventory.

Read-only: block/plot counts and area figures are computed on demand in a
single aggregate query per property, never cached.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import Session

from src.landinventory.db.models import Block, Plot, PlotStatus, Property
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class PropertyLandStatistics:
    """Block/plot counts and area figures for one property."""

    property_id: str
    total_blocks: int = 0
    total_plots: int = 0
    available_plots: int = 0
    booked_plots: int = 0
    sold_plots: int = 0
    reserved_plots: int = 0
    blocked_plots: int = 0
    total_area: float = 0.0
    average_plot_size: float = 0.0
    min_plot_size: float = 0.0
    max_plot_size: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _status_count(status: PlotStatus):
    return func.count(case((Plot.status == status.value, Plot.id)))


class StatisticsAggregator:
    """Computes per-property and portfolio-wide land statistics."""

    def __init__(self, session: Session):
        self.session = session

    def get_property_land_statistics(self, property_id: str) -> PropertyLandStatistics:
        """
        Aggregate the blocks and plots of a property.

        Blocks are outer-joined to plots so empty blocks count as blocks and
        contribute zero plots and zero area. A property without blocks yields
        all zeros.

        Args:
            property_id: Property ID

        Returns:
            PropertyLandStatistics
        """
        query = (
            select(
                func.count(distinct(Block.id)).label("total_blocks"),
                func.count(Plot.id).label("total_plots"),
                _status_count(PlotStatus.AVAILABLE).label("available_plots"),
                _status_count(PlotStatus.BOOKED).label("booked_plots"),
                _status_count(PlotStatus.SOLD).label("sold_plots"),
                _status_count(PlotStatus.RESERVED).label("reserved_plots"),
                _status_count(PlotStatus.BLOCKED).label("blocked_plots"),
                func.coalesce(func.sum(Plot.area), 0).label("total_area"),
                func.coalesce(func.avg(Plot.area), 0).label("average_plot_size"),
                func.coalesce(func.min(Plot.area), 0).label("min_plot_size"),
                func.coalesce(func.max(Plot.area), 0).label("max_plot_size"),
            )
            .select_from(Block)
            .outerjoin(Plot, Plot.block_id == Block.id)
            .where(Block.property_id == property_id)
        )
        row = self.session.execute(query).one()

        stats = PropertyLandStatistics(
            property_id=property_id,
            total_blocks=int(row.total_blocks or 0),
            total_plots=int(row.total_plots or 0),
            available_plots=int(row.available_plots or 0),
            booked_plots=int(row.booked_plots or 0),
            sold_plots=int(row.sold_plots or 0),
            reserved_plots=int(row.reserved_plots or 0),
            blocked_plots=int(row.blocked_plots or 0),
            total_area=round(float(row.total_area or 0), 2),
            average_plot_size=round(float(row.average_plot_size or 0), 2),
            min_plot_size=round(float(row.min_plot_size or 0), 2),
            max_plot_size=round(float(row.max_plot_size or 0), 2),
        )

        logger.debug(
            "land_statistics_computed",
            property_id=property_id,
            total_blocks=stats.total_blocks,
            total_plots=stats.total_plots
        )
        return stats

    def get_land_overview(self) -> List[Dict[str, Any]]:
        """
        Per-property summary for every land property.

        Returns:
            List of dicts (property_id, title, total_blocks, total_plots,
            available_plots, booked_plots, sold_plots), oldest property first
        """
        query = (
            select(
                Property.id,
                Property.title,
                func.count(distinct(Block.id)).label("total_blocks"),
                func.count(Plot.id).label("total_plots"),
                _status_count(PlotStatus.AVAILABLE).label("available_plots"),
                _status_count(PlotStatus.BOOKED).label("booked_plots"),
                _status_count(PlotStatus.SOLD).label("sold_plots"),
            )
            .select_from(Property)
            .outerjoin(Block, Block.property_id == Property.id)
            .outerjoin(Plot, Plot.block_id == Block.id)
            .where(Property.property_type == "land")
            .group_by(Property.id, Property.title, Property.created_at)
            .order_by(Property.created_at, Property.id)
        )

        overview = [
            {
                "property_id": row.id,
                "title": row.title,
                "total_blocks": row.total_blocks,
                "total_plots": row.total_plots,
                "available_plots": row.available_plots,
                "booked_plots": row.booked_plots,
                "sold_plots": row.sold_plots,
            }
            for row in self.session.execute(query).all()
        ]
        logger.info("land_overview_computed", properties=len(overview))
        return overview
