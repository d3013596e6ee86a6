"""
Load a Land Layout From JSON

Bulk inserts a blocks payload (array of blocks with nested plots) into a
property and optionally saves the result as the active configuration.

Usage:
    python scripts/load_land_layout.py layout.json --property-id <id> --snapshot "Master Plan"
    python scripts/load_land_layout.py layout.json --create-property --title "Green Acres"
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.landinventory.db.repository import PropertyRepository
from src.landinventory.db.session import get_db_session
from src.landinventory.exceptions import LandInventoryError
from src.landinventory.services.engine import LandInventoryEngine
from src.landinventory.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def create_property(title: str) -> str:
    """Create a land property row and return its ID."""
    with get_db_session() as session:
        prop = PropertyRepository().create(session, title=title, property_type="land")
        return prop.id


def main():
    """Main entry point for the layout loader."""
    parser = argparse.ArgumentParser(
        description="Bulk insert a land layout JSON file into a property"
    )
    parser.add_argument('layout_file', type=Path, help='JSON file with the blocks array')
    parser.add_argument('--property-id', help='Existing property ID')
    parser.add_argument(
        '--create-property',
        action='store_true',
        help='Create a new land property for the layout'
    )
    parser.add_argument('--title', default=None, help='Title of the created property')
    parser.add_argument(
        '--snapshot',
        default=None,
        help='Save the loaded layout as the active configuration with this name'
    )
    args = parser.parse_args()

    if not args.property_id and not args.create_property:
        parser.error("either --property-id or --create-property is required")

    setup_logging()
    payload = json.loads(args.layout_file.read_text(encoding="utf-8"))
    engine = LandInventoryEngine()

    try:
        property_id = args.property_id or create_property(args.title)
        blocks = engine.bulk_insert(property_id, payload)
        config_id = engine.save_configuration(property_id, args.snapshot) if args.snapshot else None
    except LandInventoryError as e:
        logger.error("layout_load_failed", **e.to_dict(debug=True))
        print(f"Failed: {e.message}")
        sys.exit(1)

    plot_count = sum(len(block["plots"]) for block in blocks)
    logger.info(
        "layout_loaded",
        property_id=property_id,
        blocks=len(blocks),
        plots=plot_count,
        config_id=config_id
    )

    print("\n" + "="*60)
    print("LAND LAYOUT LOADED")
    print("="*60)
    print(f"Property:      {property_id}")
    print(f"Blocks:        {len(blocks)}")
    print(f"Plots:         {plot_count}")
    if config_id:
        print(f"Configuration: {config_id}")
    print("="*60 + "\n")


if __name__ == "__main__":
    main()
