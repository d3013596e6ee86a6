"""
Tests for configuration snapshots and apply.
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from src.landinventory.db.models import LandConfiguration
from src.landinventory.db.session import get_db_session
from src.landinventory.exceptions import ConflictError, NotFoundError, ValidationError
from src.landinventory.services import configurations
from src.landinventory.services.inventory import LiveInventoryService


def strip_ids(payload):
    """Layout payload without captured identifiers."""
    return [
        {
            **{key: value for key, value in block.items() if key != "id"},
            "plots": [{key: value for key, value in plot.items() if key != "id"} for plot in block["plots"]],
        }
        for block in payload
    ]


def active_count(session_factory, property_id):
    with get_db_session(session_factory) as session:
        return session.scalar(
            select(func.count()).select_from(LandConfiguration).where(
                LandConfiguration.property_id == property_id,
                LandConfiguration.is_active == True
            )
        )


@pytest.fixture
def layout(land_engine, property_id):
    """Two blocks with plots in mixed states."""
    return land_engine.bulk_insert(property_id, [
        {"name": "Block A", "description": "North", "plots": [
            {"plot_number": "P001", "area": 1200, "price": "15 lakhs", "status": "available"},
            {"plot_number": "P002", "area": 1500, "price": "18 lakhs", "status": "booked", "description": "Corner"},
        ]},
        {"name": "Block B", "plots": [
            {"plot_number": "B-1", "area": 900.75, "status": "sold"},
        ]},
        {"name": "Block C", "plots": []},
    ])


class TestSnapshot:
    """Tests for saving configurations."""

    def test_snapshot_captures_layout(self, land_engine, property_id, layout):
        config_id = land_engine.save_configuration(property_id, "Master Plan")

        config = land_engine.get_configuration(config_id)

        assert config["is_active"] is True
        assert config["configuration_name"] == "Master Plan"
        assert [block["name"] for block in config["blocks_data"]] == ["Block A", "Block B", "Block C"]
        first_plot = config["blocks_data"][0]["plots"][0]
        assert first_plot["id"] == layout[0]["plots"][0]["id"]
        assert first_plot["plot_number"] == "P001"
        assert first_plot["area"] == 1200.0
        assert first_plot["price"] == "15 lakhs"
        assert first_plot["status"] == "available"
        assert config["blocks_data"][2]["plots"] == []

    def test_new_snapshot_deactivates_previous(self, land_engine, property_id, layout, session_factory):
        first = land_engine.save_configuration(property_id, "Phase 1")
        second = land_engine.save_configuration(property_id, "Phase 2")

        assert land_engine.get_configuration(first)["is_active"] is False
        assert land_engine.get_configuration(second)["is_active"] is True
        assert active_count(session_factory, property_id) == 1

    def test_snapshot_of_empty_property(self, land_engine, property_id):
        config_id = land_engine.save_configuration(property_id, "Empty")

        assert land_engine.get_configuration(config_id)["blocks_data"] == []

    def test_unknown_property(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.save_configuration("missing", "Master Plan")

    @pytest.mark.parametrize("name", ["", "  ", "x" * 101])
    def test_invalid_name(self, land_engine, property_id, name):
        with pytest.raises(ValidationError):
            land_engine.save_configuration(property_id, name)


class TestDuplicateAndMetadata:
    """Tests for duplicate, rename, list and delete."""

    def test_duplicate_is_inactive_copy(self, land_engine, property_id, layout, session_factory):
        source = land_engine.save_configuration(property_id, "Master Plan")

        copy_id = land_engine.duplicate_configuration(source, "Master Plan (copy)")

        copied = land_engine.get_configuration(copy_id)
        assert copied["is_active"] is False
        assert copied["property_id"] == property_id
        assert copied["blocks_data"] == land_engine.get_configuration(source)["blocks_data"]
        assert active_count(session_factory, property_id) == 1

    def test_duplicate_unknown_source(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.duplicate_configuration("missing", "Copy")

    def test_list_rename_delete(self, land_engine, property_id, layout):
        config_id = land_engine.save_configuration(property_id, "Master Plan")
        land_engine.duplicate_configuration(config_id, "Alternative")

        renamed = land_engine.rename_configuration(config_id, "Approved Plan")
        listed = land_engine.list_configurations(property_id)

        assert renamed["configuration_name"] == "Approved Plan"
        assert {config["configuration_name"] for config in listed} == {"Approved Plan", "Alternative"}
        assert all("blocks_data" not in config for config in listed)

        assert land_engine.delete_configuration(config_id) is True
        assert land_engine.delete_configuration(config_id) is False
        with pytest.raises(NotFoundError):
            land_engine.get_configuration(config_id)


class TestApply:
    """Tests for applying configurations."""

    def test_round_trip(self, land_engine, property_id, layout):
        original_id = land_engine.save_configuration(property_id, "Master Plan")
        original = land_engine.get_configuration(original_id)["blocks_data"]

        assert land_engine.apply_configuration(original_id) is True
        again_id = land_engine.save_configuration(property_id, "After apply")
        again = land_engine.get_configuration(again_id)["blocks_data"]

        assert strip_ids(again) == strip_ids(original)

    def test_apply_restores_layout_after_changes(self, land_engine, property_id, layout):
        config_id = land_engine.save_configuration(property_id, "Master Plan")
        land_engine.delete_block_safely(layout[1]["id"])
        land_engine.create_block(property_id, "Block D")
        land_engine.update_plot_booking(layout[0]["plots"][0]["id"], "sold", user_id="buyer-1")

        land_engine.apply_configuration(config_id)

        blocks = land_engine.list_blocks(property_id)
        assert [block["name"] for block in blocks] == ["Block A", "Block B", "Block C"]
        stats = land_engine.get_statistics(property_id)
        assert stats.total_plots == 3
        assert stats.available_plots == 1
        assert stats.sold_plots == 1
        assert stats.total_area == 3600.75

    def test_apply_generates_fresh_ids(self, land_engine, property_id, layout):
        config_id = land_engine.save_configuration(property_id, "Master Plan")

        land_engine.apply_configuration(config_id)

        block_a = land_engine.get_block_by_name(property_id, "Block A")
        assert block_a["id"] != layout[0]["id"]
        with pytest.raises(NotFoundError):
            land_engine.get_plot(layout[0]["plots"][0]["id"])

    def test_apply_keeps_single_active_configuration(self, land_engine, property_id, layout, session_factory):
        for name in ("One", "Two", "Three"):
            config_id = land_engine.save_configuration(property_id, name)
            land_engine.apply_configuration(config_id)
            assert active_count(session_factory, property_id) == 1

        assert land_engine.get_configuration(config_id)["is_active"] is True

    def test_apply_unknown_configuration(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.apply_configuration("missing")

    def test_apply_inactive_configuration(self, land_engine, property_id, layout):
        source = land_engine.save_configuration(property_id, "Master Plan")
        copy_id = land_engine.duplicate_configuration(source, "Copy")

        with pytest.raises(NotFoundError):
            land_engine.apply_configuration(copy_id)

    def test_malformed_payload_leaves_inventory_untouched(self, land_engine, property_id, layout, session_factory):
        config_id = land_engine.save_configuration(property_id, "Master Plan")
        with get_db_session(session_factory) as session:
            config = session.get(LandConfiguration, config_id)
            config.blocks_data = [
                {"name": "Block X", "plots": [{"plot_number": "X1", "area": 0}]},
            ]

        with pytest.raises(ValidationError):
            land_engine.apply_configuration(config_id)

        blocks = land_engine.list_blocks(property_id)
        assert [block["name"] for block in blocks] == ["Block A", "Block B", "Block C"]
        assert land_engine.get_plot(layout[0]["plots"][0]["id"])["plot_number"] == "P001"

    def test_failure_mid_apply_rolls_back(self, land_engine, property_id, layout, monkeypatch):
        config_id = land_engine.save_configuration(property_id, "Master Plan")

        def interrupted(self, property_id, layout):
            raise KeyboardInterrupt

        monkeypatch.setattr(LiveInventoryService, "insert_layout", interrupted)

        with pytest.raises(KeyboardInterrupt):
            land_engine.apply_configuration(config_id)

        assert land_engine.get_plot(layout[0]["plots"][0]["id"])["plot_number"] == "P001"
        assert land_engine.get_statistics(property_id).total_plots == 3

    def test_lock_failure_surfaces_as_conflict(self, land_engine, property_id, layout, monkeypatch):
        config_id = land_engine.save_configuration(property_id, "Master Plan")

        def locked(session, model, id_value):
            raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("database is locked"))

        monkeypatch.setattr(configurations, "lock_row", locked)

        with pytest.raises(ConflictError):
            land_engine.apply_configuration(config_id)

        assert land_engine.get_statistics(property_id).total_plots == 3
