"""
Tests for block/plot operations, bulk insert and safe delete.
"""
import pytest
from sqlalchemy import func, select

from src.landinventory.db.models import Block, Plot, PlotStatusHistory
from src.landinventory.db.session import get_db_session
from src.landinventory.exceptions import ConflictError, NotFoundError, ValidationError
from src.landinventory.services.plot_numbering import PlotNumberAllocator


def count_rows(session_factory, model):
    with get_db_session(session_factory) as session:
        return session.scalar(select(func.count()).select_from(model))


class TestBlocks:
    """Tests for block operations."""

    def test_create_and_get_block(self, land_engine, property_id):
        block = land_engine.create_block(property_id, "  Block A ", "North side")

        assert block["name"] == "Block A"
        assert land_engine.get_block(block["id"])["description"] == "North side"

    def test_duplicate_name_ignoring_case(self, land_engine, property_id):
        land_engine.create_block(property_id, "Block A")

        with pytest.raises(ValidationError):
            land_engine.create_block(property_id, "BLOCK A")

    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
    def test_invalid_name(self, land_engine, property_id, name):
        with pytest.raises(ValidationError):
            land_engine.create_block(property_id, name)

    def test_unknown_property(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.create_block("missing", "Block A")

    def test_list_blocks_with_counts(self, land_engine, property_id, block_a_payload):
        land_engine.bulk_insert(property_id, block_a_payload)
        land_engine.create_block(property_id, "Block B")

        blocks = land_engine.list_blocks(property_id)

        assert [(b["name"], b["total_plots"], b["available_plots"]) for b in blocks] == [
            ("Block A", 2, 1),
            ("Block B", 0, 0),
        ]

    def test_get_block_by_name(self, land_engine, property_id, block_a_payload):
        land_engine.bulk_insert(property_id, block_a_payload)

        block = land_engine.get_block_by_name(property_id, "block a")

        assert block["name"] == "Block A"
        assert block["total_plots"] == 2
        assert block["available_plots"] == 1
        assert land_engine.get_block_by_name(property_id, "Block Z") is None

    def test_rename_block(self, land_engine, property_id):
        first = land_engine.create_block(property_id, "Block A")
        land_engine.create_block(property_id, "Block B")

        assert land_engine.update_block(first["id"], name="Phase 1")["name"] == "Phase 1"
        with pytest.raises(ValidationError):
            land_engine.update_block(first["id"], name="block b")


class TestSafeDelete:
    """Tests for safe block deletion."""

    def test_missing_block_returns_false(self, land_engine, session_factory):
        assert land_engine.delete_block_safely("missing") is False
        assert count_rows(session_factory, Block) == 0

    def test_deletes_block_and_all_plots(self, land_engine, property_id, session_factory):
        block = land_engine.create_block(property_id, "Block A")
        for _ in range(3):
            land_engine.create_plot(block["id"], {"area": 1000})
        kept = land_engine.create_block(property_id, "Block B")
        land_engine.create_plot(kept["id"], {"area": 500})

        assert land_engine.delete_block_safely(block["id"]) is True

        assert count_rows(session_factory, Block) == 1
        assert count_rows(session_factory, Plot) == 1
        with pytest.raises(NotFoundError):
            land_engine.get_block(block["id"])

    def test_status_history_outlives_deleted_plots(self, land_engine, property_id, session_factory):
        block = land_engine.create_block(property_id, "Block A")
        plot = land_engine.create_plot(block["id"], {"area": 1000})
        land_engine.update_plot_status(plot["id"], "sold")

        land_engine.delete_block_safely(block["id"])

        with get_db_session(session_factory) as session:
            entry = session.scalars(select(PlotStatusHistory)).one()
            assert entry.plot_id is None
            assert entry.plot_number == "P001"


class TestPlots:
    """Tests for plot operations."""

    @pytest.fixture
    def block_id(self, land_engine, property_id):
        return land_engine.create_block(property_id, "Block A")["id"]

    def test_create_plot_with_explicit_number(self, land_engine, block_id):
        plot = land_engine.create_plot(block_id, {"plot_number": "C-12", "area": 1500.5, "price": 1500000})

        assert plot["plot_number"] == "C-12"
        assert plot["area"] == 1500.5
        assert plot["price"] == "1500000"
        assert plot["status"] == "available"

    def test_create_plot_allocates_numbers(self, land_engine, block_id):
        numbers = [land_engine.create_plot(block_id, {"area": 1000})["plot_number"] for _ in range(3)]

        assert numbers == ["P001", "P002", "P003"]
        assert land_engine.next_plot_number(block_id) == "P004"

    def test_duplicate_plot_number_ignoring_case(self, land_engine, block_id):
        land_engine.create_plot(block_id, {"plot_number": "P001", "area": 1000})

        with pytest.raises(ValidationError):
            land_engine.create_plot(block_id, {"plot_number": "p001", "area": 1000})

    @pytest.mark.parametrize("area", [0, -5, 1e11])
    def test_out_of_range_area_rejected_without_changes(self, land_engine, block_id, session_factory, area):
        with pytest.raises(ValidationError):
            land_engine.create_plot(block_id, {"plot_number": "P001", "area": area})

        assert count_rows(session_factory, Plot) == 0

    @pytest.mark.parametrize("status", ["Sold", "pending", ""])
    def test_unknown_status_rejected(self, land_engine, block_id, status):
        with pytest.raises(ValidationError):
            land_engine.create_plot(block_id, {"plot_number": "P001", "area": 100, "status": status})

    def test_unknown_block(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.create_plot("missing", {"area": 100})

    def test_allocation_retries_after_collision(self, land_engine, block_id, monkeypatch):
        land_engine.create_plot(block_id, {"plot_number": "P001", "area": 100})
        proposals = iter(["P001", "P002"])
        monkeypatch.setattr(
            PlotNumberAllocator,
            "next_plot_number",
            lambda self, session, block_id, prefix=None: next(proposals)
        )

        plot = land_engine.create_plot(block_id, {"area": 100})

        assert plot["plot_number"] == "P002"

    def test_allocation_gives_up_with_conflict(self, land_engine, block_id, session_factory, monkeypatch):
        land_engine.create_plot(block_id, {"plot_number": "P001", "area": 100})
        monkeypatch.setattr(
            PlotNumberAllocator,
            "next_plot_number",
            lambda self, session, block_id, prefix=None: "P001"
        )

        with pytest.raises(ConflictError):
            land_engine.create_plot(block_id, {"area": 100})

        assert count_rows(session_factory, Plot) == 1

    def test_list_plots(self, land_engine, block_id):
        land_engine.create_plot(block_id, {"plot_number": "P002", "area": 100})
        land_engine.create_plot(block_id, {"plot_number": "P001", "area": 100, "status": "sold"})
        land_engine.create_plot(block_id, {"plot_number": "P003", "area": 100})

        assert [p["plot_number"] for p in land_engine.list_plots(block_id)] == ["P002", "P001", "P003"]
        assert [p["plot_number"] for p in land_engine.list_plots(block_id, "sold")] == ["P001"]
        assert [p["plot_number"] for p in land_engine.list_available_plots(block_id)] == ["P002", "P003"]
        with pytest.raises(ValidationError):
            land_engine.list_plots(block_id, "SOLD")

    def test_update_plot(self, land_engine, block_id):
        plot = land_engine.create_plot(block_id, {"area": 100})

        updated = land_engine.update_plot(plot["id"], {"area": 250, "description": "Corner plot"})

        assert updated["area"] == 250.0
        assert updated["description"] == "Corner plot"

    @pytest.mark.parametrize("fields", [{"area": 0}, {"area": 1e11}, {"status": "gone"}, {"plot_number": ""}, {"colour": "red"}])
    def test_update_plot_rejects_invalid_fields(self, land_engine, block_id, fields):
        plot = land_engine.create_plot(block_id, {"area": 100})

        with pytest.raises(ValidationError):
            land_engine.update_plot(plot["id"], fields)

        assert land_engine.get_plot(plot["id"])["area"] == 100.0

    def test_delete_plot(self, land_engine, block_id):
        plot = land_engine.create_plot(block_id, {"area": 100})

        assert land_engine.delete_plot(plot["id"]) is True
        assert land_engine.delete_plot(plot["id"]) is False


class TestStatusOperations:
    """Tests for status updates through the engine."""

    @pytest.fixture
    def plot_id(self, land_engine, property_id):
        block = land_engine.create_block(property_id, "Block A")
        return land_engine.create_plot(block["id"], {"area": 1000})["id"]

    def test_status_history_newest_first(self, land_engine, plot_id):
        land_engine.update_plot_status(plot_id, "reserved", actor_id="agent-7", reason="Site visit")
        land_engine.update_plot_status(plot_id, "booked", actor_id="agent-7")
        land_engine.update_plot_status(plot_id, "sold", actor_id="buyer-1")

        entries = land_engine.get_status_history(plot_id)

        assert [e["new_status"] for e in entries] == ["sold", "booked", "reserved"]
        assert entries[-1]["changed_by"] == "agent-7"
        assert entries[-1]["change_reason"] == "Site visit"

    def test_booking_sold(self, land_engine, plot_id):
        assert land_engine.update_plot_booking(plot_id, "sold", user_id="buyer-1") is True

        plot = land_engine.get_plot(plot_id)
        assert plot["status"] == "sold"
        assert plot["booked_by"] == "buyer-1"
        assert plot["booked_at"] is not None
        assert [(e["previous_status"], e["new_status"]) for e in land_engine.get_status_history(plot_id)] == [
            ("available", "sold")
        ]

    def test_unknown_plot_raises_not_found(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.update_plot_status("missing", "sold")
        with pytest.raises(NotFoundError):
            land_engine.update_plot_booking("missing", "sold")

    def test_unknown_status_raises_validation_error(self, land_engine, plot_id):
        with pytest.raises(ValidationError):
            land_engine.update_plot_status(plot_id, "Sold")

        assert land_engine.get_plot(plot_id)["status"] == "available"


class TestBulkInsert:
    """Tests for bulk insert."""

    def test_inserts_blocks_and_plots_in_order(self, land_engine, property_id):
        payload = [
            {"name": "Block A", "plots": [
                {"plot_number": "P002", "area": 100},
                {"plot_number": "P001", "area": 200, "status": "reserved"},
            ]},
            {"name": "Block B", "description": "Lake side", "plots": None},
        ]

        result = land_engine.bulk_insert(property_id, payload)

        assert [block["name"] for block in result] == ["Block A", "Block B"]
        assert [plot["plot_number"] for plot in result[0]["plots"]] == ["P002", "P001"]
        assert result[0]["plots"][1]["status"] == "reserved"
        assert all(plot["block_id"] == result[0]["id"] for plot in result[0]["plots"])
        assert result[1]["plots"] == []

    @pytest.mark.parametrize("payload", [
        [{"name": "Block A", "plots": [{"plot_number": "P001", "area": 100}, {"plot_number": "p001", "area": 100}]}],
        [{"name": "Block A"}, {"name": "block a"}],
        [{"name": "Block A", "plots": [{"plot_number": "P001", "area": -1}]}],
        [{"name": "Block A", "plots": [{"plot_number": "P001", "area": 1e11}]}],
        [{"name": "Block A", "plots": [{"plot_number": "P001", "area": 1, "status": "Available"}]}],
        [{"plots": []}],
        {"name": "Block A"},
    ])
    def test_invalid_payload_inserts_nothing(self, land_engine, property_id, session_factory, payload):
        with pytest.raises(ValidationError):
            land_engine.bulk_insert(property_id, payload)

        assert count_rows(session_factory, Block) == 0
        assert count_rows(session_factory, Plot) == 0

    def test_collision_with_existing_block_inserts_nothing(self, land_engine, property_id, session_factory):
        land_engine.create_block(property_id, "Block B")
        payload = [
            {"name": "Block A", "plots": [{"plot_number": "P001", "area": 100}]},
            {"name": "BLOCK B", "plots": []},
        ]

        with pytest.raises(ValidationError):
            land_engine.bulk_insert(property_id, payload)

        assert count_rows(session_factory, Block) == 1
        assert count_rows(session_factory, Plot) == 0

    def test_unknown_property(self, land_engine):
        with pytest.raises(NotFoundError):
            land_engine.bulk_insert("missing", [{"name": "Block A"}])
