"""
Land Inventory Engine

Entry point for callers (route handlers, scripts). Every method is one
logical operation in one transaction: it opens a session scope, runs the
services, commits on success and rolls back on any failure. Results are
plain dicts built while the session is still open.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from src.landinventory.db.session import get_db_session, get_session_factory
from src.landinventory.exceptions import NotFoundError
from src.landinventory.services.configurations import ConfigurationApplier, ConfigurationStore
from src.landinventory.services.inventory import LiveInventoryService
from src.landinventory.services.statistics import PropertyLandStatistics, StatisticsAggregator
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)


class LandInventoryEngine:
    """
    Facade over the land inventory services.

    Args:
        session_factory: Session factory (defaults to the application factory)
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or get_session_factory()

    def _session(self):
        return get_db_session(self.session_factory)

    # Statistics

    def get_statistics(self, property_id: str) -> PropertyLandStatistics:
        with self._session() as session:
            return StatisticsAggregator(session).get_property_land_statistics(property_id)

    def get_land_overview(self) -> List[Dict[str, Any]]:
        with self._session() as session:
            return StatisticsAggregator(session).get_land_overview()

    # Blocks

    def create_block(self, property_id: str, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        with self._session() as session:
            return LiveInventoryService(session).create_block(property_id, name, description).to_dict()

    def get_block(self, block_id: str, include_plots: bool = False) -> Dict[str, Any]:
        with self._session() as session:
            return LiveInventoryService(session).require_block(block_id).to_dict(include_plots=include_plots)

    def list_blocks(self, property_id: str) -> List[Dict[str, Any]]:
        with self._session() as session:
            return LiveInventoryService(session).list_blocks(property_id)

    def get_block_by_name(self, property_id: str, name: str) -> Optional[Dict[str, Any]]:
        with self._session() as session:
            return LiveInventoryService(session).get_block_by_name(property_id, name)

    def update_block(
        self,
        block_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        with self._session() as session:
            return LiveInventoryService(session).update_block(block_id, name, description).to_dict()

    def delete_block_safely(self, block_id: str) -> bool:
        """Delete a block and its plots; False when the block does not exist."""
        with self._session() as session:
            return LiveInventoryService(session).safe_delete_block(block_id)

    # Plots

    def create_plot(self, block_id: str, fields: Dict[str, Any], prefix: Optional[str] = None) -> Dict[str, Any]:
        """Create a plot; the plot number is allocated when ``fields`` has none."""
        with self._session() as session:
            return LiveInventoryService(session).create_plot(block_id, fields, prefix).to_dict()

    def get_plot(self, plot_id: str) -> Dict[str, Any]:
        with self._session() as session:
            return LiveInventoryService(session).require_plot(plot_id).to_dict()

    def list_plots(self, block_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._session() as session:
            return [plot.to_dict() for plot in LiveInventoryService(session).list_plots(block_id, status)]

    def list_available_plots(self, block_id: str) -> List[Dict[str, Any]]:
        with self._session() as session:
            return [plot.to_dict() for plot in LiveInventoryService(session).list_available_plots(block_id)]

    def update_plot(self, plot_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._session() as session:
            return LiveInventoryService(session).update_plot(plot_id, fields).to_dict()

    def delete_plot(self, plot_id: str) -> bool:
        with self._session() as session:
            return LiveInventoryService(session).delete_plot(plot_id)

    def next_plot_number(self, block_id: str, prefix: Optional[str] = None) -> str:
        with self._session() as session:
            return LiveInventoryService(session).next_plot_number(block_id, prefix)

    # Status

    def update_plot_status(
        self,
        plot_id: str,
        status: str,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None
    ) -> bool:
        """
        Change a plot's status and record the transition.

        Raises:
            ValidationError: If the status is unknown
            NotFoundError: If the plot does not exist
        """
        with self._session() as session:
            if not LiveInventoryService(session).update_plot_status(plot_id, status, actor_id, reason):
                raise NotFoundError(f"Plot {plot_id} not found")
            return True

    def update_plot_booking(self, plot_id: str, status: str, user_id: Optional[str] = None) -> bool:
        """
        Change a plot's status and booking fields.

        Raises:
            ValidationError: If the status is unknown
            NotFoundError: If the plot does not exist
        """
        with self._session() as session:
            if not LiveInventoryService(session).update_plot_booking(plot_id, status, user_id):
                raise NotFoundError(f"Plot {plot_id} not found")
            return True

    def get_status_history(self, plot_id: str) -> List[Dict[str, Any]]:
        with self._session() as session:
            return [entry.to_dict() for entry in LiveInventoryService(session).get_status_history(plot_id)]

    # Bulk

    def bulk_insert(self, property_id: str, blocks_payload: Any) -> List[Dict[str, Any]]:
        """
        Insert blocks with nested plots in one transaction.

        Returns:
            Created blocks, each with its created plots
        """
        with self._session() as session:
            blocks = LiveInventoryService(session).bulk_insert(property_id, blocks_payload)
            return [block.to_dict(include_plots=True) for block in blocks]

    # Configurations

    def save_configuration(self, property_id: str, name: str) -> str:
        """Snapshot the live layout as the property's active configuration; returns its ID."""
        with self._session() as session:
            return ConfigurationStore(session).create_snapshot(property_id, name).id

    def apply_configuration(self, config_id: str) -> bool:
        """Replace the live layout with an active configuration."""
        with self._session() as session:
            ConfigurationApplier(session).apply(config_id)
            return True

    def duplicate_configuration(self, config_id: str, new_name: str) -> str:
        with self._session() as session:
            return ConfigurationStore(session).duplicate(config_id, new_name).id

    def get_configuration(self, config_id: str, include_payload: bool = True) -> Dict[str, Any]:
        with self._session() as session:
            return ConfigurationStore(session).require(config_id).to_dict(include_payload=include_payload)

    def list_configurations(self, property_id: str) -> List[Dict[str, Any]]:
        with self._session() as session:
            return [
                config.to_dict(include_payload=False)
                for config in ConfigurationStore(session).list(property_id)
            ]

    def rename_configuration(self, config_id: str, new_name: str) -> Dict[str, Any]:
        with self._session() as session:
            return ConfigurationStore(session).rename(config_id, new_name).to_dict(include_payload=False)

    def delete_configuration(self, config_id: str) -> bool:
        with self._session() as session:
            return ConfigurationStore(session).delete(config_id)
