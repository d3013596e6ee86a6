"""
Database Package

Land inventory models, connection management, and data persistence layer.
"""
from src.landinventory.db.base import Base
from src.landinventory.db.session import (
    configure_sqlite_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    get_db_session,
    health_check,
    close_connections,
    create_all_tables,
    drop_all_tables,
)
from src.landinventory.db.models import (
    PlotStatus,
    Property,
    Block,
    Plot,
    PlotStatusHistory,
    LandConfiguration,
)
from src.landinventory.db.repository import (
    BaseRepository,
    PropertyRepository,
    BlockRepository,
    PlotRepository,
    StatusHistoryRepository,
    ConfigurationRepository,
)
from src.landinventory.db import utils as db_utils

__all__ = [
    # Base
    "Base",
    # Session management
    "configure_sqlite_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "get_db_session",
    "health_check",
    "close_connections",
    "create_all_tables",
    "drop_all_tables",
    # Models
    "PlotStatus",
    "Property",
    "Block",
    "Plot",
    "PlotStatusHistory",
    "LandConfiguration",
    # Repositories
    "BaseRepository",
    "PropertyRepository",
    "BlockRepository",
    "PlotRepository",
    "StatusHistoryRepository",
    "ConfigurationRepository",
    # Utilities
    "db_utils",
]
