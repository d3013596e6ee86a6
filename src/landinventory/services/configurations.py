"""
Land configurations: snapshot and apply.

A configuration is a named value copy of a property's whole block/plot
layout. ``ConfigurationStore`` captures and manages them;
``ConfigurationApplier`` replaces the live layout with a stored one.
"""
import copy
from typing import List, Optional

from sqlalchemy.exc import DataError, DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from src.landinventory.db.models import LandConfiguration, Property
from src.landinventory.db.repository import (
    BlockRepository,
    ConfigurationRepository,
    PlotRepository,
)
from src.landinventory.db.utils import (
    is_retryable_error,
    lock_row,
    translate_conflict_error,
    translate_integrity_error,
)
from src.landinventory.exceptions import NotFoundError, ValidationError
from src.landinventory.models.layout import BlockRecord, LandLayout, PlotRecord, parse_layout
from src.landinventory.services.inventory import LiveInventoryService
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

CONFIGURATION_NAME_MAX_LENGTH = 100


def _clean_configuration_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Configuration name is required")
    if len(name) > CONFIGURATION_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Configuration name must be at most {CONFIGURATION_NAME_MAX_LENGTH} characters"
        )
    return name


class ConfigurationStore:
    """Captures, copies and manages stored layouts of a property."""

    def __init__(self, session: Session):
        self.session = session
        self.blocks = BlockRepository()
        self.configurations = ConfigurationRepository()

    def require(self, config_id: str) -> LandConfiguration:
        config = self.configurations.get_by_id(self.session, config_id)
        if config is None:
            raise NotFoundError(f"Configuration {config_id} not found")
        return config

    def capture_layout(self, property_id: str) -> LandLayout:
        """
        Read the live layout of a property.

        Blocks and plots keep their creation order and carry their current
        identifiers for reference.
        """
        blocks = []
        for block in self.blocks.get_by_property(self.session, property_id):
            plots = [
                PlotRecord(
                    id=plot.id,
                    plot_number=plot.plot_number,
                    area=plot.area,
                    price=plot.price,
                    status=plot.status,
                    description=plot.description,
                )
                for plot in block.plots
            ]
            blocks.append(
                BlockRecord(id=block.id, name=block.name, description=block.description, plots=plots)
            )
        return LandLayout(blocks=blocks)

    def create_snapshot(self, property_id: str, name: str) -> LandConfiguration:
        """
        Save the live layout of a property as its new active configuration.

        The property row is locked so the captured layout cannot change
        underneath the snapshot. Any previously active configuration is
        deactivated before the new one is inserted.

        Args:
            property_id: Property ID
            name: Configuration name

        Returns:
            Created configuration

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: If the name is empty or too long
        """
        name = _clean_configuration_name(name)
        if lock_row(self.session, Property, property_id) is None:
            raise NotFoundError(f"Property {property_id} not found")

        layout = self.capture_layout(property_id)
        self.configurations.deactivate_all(self.session, property_id)
        try:
            config = self.configurations.create(
                self.session,
                property_id=property_id,
                configuration_name=name,
                blocks_data=layout.to_payload(),
                is_active=True,
            )
        except IntegrityError as e:
            raise translate_integrity_error(e, "Configuration could not be saved") from e

        logger.info(
            "configuration_snapshot_created",
            config_id=config.id,
            property_id=property_id,
            blocks=len(layout.blocks),
            plots=layout.plot_count
        )
        return config

    def duplicate(self, source_id: str, new_name: str) -> LandConfiguration:
        """
        Copy a configuration's payload into a new inactive configuration.

        Raises:
            NotFoundError: If the source does not exist
            ValidationError: If the name is empty or too long
        """
        new_name = _clean_configuration_name(new_name)
        source = self.require(source_id)

        config = self.configurations.create(
            self.session,
            property_id=source.property_id,
            configuration_name=new_name,
            blocks_data=copy.deepcopy(source.blocks_data),
            is_active=False,
        )
        logger.info("configuration_duplicated", source_id=source_id, config_id=config.id)
        return config

    def list(self, property_id: str) -> List[LandConfiguration]:
        return self.configurations.get_by_property(self.session, property_id)

    def rename(self, config_id: str, new_name: str) -> LandConfiguration:
        new_name = _clean_configuration_name(new_name)
        config = self.configurations.update(self.session, config_id, configuration_name=new_name)
        if config is None:
            raise NotFoundError(f"Configuration {config_id} not found")
        logger.info("configuration_renamed", config_id=config_id)
        return config

    def delete(self, config_id: str) -> bool:
        """Delete a configuration; False if it does not exist."""
        deleted = self.configurations.delete(self.session, config_id)
        if deleted:
            logger.info("configuration_deleted", config_id=config_id)
        return deleted


class ConfigurationApplier:
    """Replaces a property's live layout with a stored configuration."""

    def __init__(self, session: Session):
        self.session = session
        self.blocks = BlockRepository()
        self.plots = PlotRepository()
        self.configurations = ConfigurationRepository()
        self.inventory = LiveInventoryService(session)

    def apply(self, config_id: str) -> LandConfiguration:
        """
        Tear down the live layout and rebuild it from a configuration.

        The payload is validated before anything is deleted. The owning
        property row is locked for the rest of the transaction so concurrent
        applies on the same property run one after another. Plots and blocks
        get fresh identifiers.

        Args:
            config_id: Configuration ID

        Returns:
            The applied (active) configuration

        Raises:
            NotFoundError: If the configuration does not exist or is not active
            ValidationError: If the stored payload is malformed
            ConflictError: If the property could not be locked
        """
        config = self.configurations.get_by_id(self.session, config_id)
        if config is None or not config.is_active:
            raise NotFoundError(f"Active configuration {config_id} not found")

        layout = parse_layout(config.blocks_data)
        property_id = config.property_id

        try:
            lock_row(self.session, Property, property_id)
            self.session.refresh(config)
            if not config.is_active:
                raise NotFoundError(f"Active configuration {config_id} not found")

            plots_deleted = self.plots.delete_by_property(self.session, property_id)
            blocks_deleted = self.blocks.delete_by_property(self.session, property_id)

            self.inventory.insert_layout(property_id, layout)

            self.configurations.deactivate_all(self.session, property_id, except_id=config.id)
            config.is_active = True
            self.session.flush()
        except DBAPIError as e:
            if is_retryable_error(e):
                raise translate_conflict_error(e, "Configuration apply collided with another writer, please retry") from e
            if isinstance(e, (IntegrityError, DataError)):
                raise translate_integrity_error(e, "Configuration payload violates a uniqueness or value rule") from e
            raise

        logger.info(
            "configuration_applied",
            config_id=config_id,
            property_id=property_id,
            plots_deleted=plots_deleted,
            blocks_deleted=blocks_deleted,
            blocks_created=len(layout.blocks),
            plots_created=layout.plot_count
        )
        return config
