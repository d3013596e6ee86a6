"""
Tests for Database Models

Tests constraints, unique indexes, cascades and serialization of the land
inventory schema.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.landinventory.db.models import (
    Block,
    LandConfiguration,
    Plot,
    PlotStatus,
    PlotStatusHistory,
    Property,
)


@pytest.fixture
def land_property(test_db):
    prop = Property(title="Green Acres")
    test_db.add(prop)
    test_db.commit()
    return prop


@pytest.fixture
def block(test_db, land_property):
    block = Block(property_id=land_property.id, name="Block A")
    test_db.add(block)
    test_db.commit()
    return block


class TestPropertyModel:
    """Tests for Property model."""

    def test_defaults(self, test_db, land_property):
        assert land_property.property_type == "land"
        assert land_property.id is not None
        assert len(land_property.id) == 36
        assert land_property.created_at is not None

    def test_delete_cascades_to_blocks_plots_and_configurations(self, test_db, land_property, block):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=100))
        test_db.add(LandConfiguration(
            property_id=land_property.id,
            configuration_name="Master Plan",
            blocks_data=[],
            is_active=True,
        ))
        test_db.commit()

        test_db.delete(land_property)
        test_db.commit()

        assert test_db.scalars(select(Block)).all() == []
        assert test_db.scalars(select(Plot)).all() == []
        assert test_db.scalars(select(LandConfiguration)).all() == []


class TestBlockModel:
    """Tests for Block model."""

    def test_block_name_unique_ignoring_case(self, test_db, land_property, block):
        test_db.add(Block(property_id=land_property.id, name="BLOCK a"))

        with pytest.raises(IntegrityError):
            test_db.commit()

    def test_same_name_allowed_in_other_property(self, test_db, block):
        other = Property(title="Hill View")
        test_db.add(other)
        test_db.flush()
        test_db.add(Block(property_id=other.id, name="Block A"))
        test_db.commit()

        assert len(test_db.scalars(select(Block).where(Block.name == "Block A")).all()) == 2

    def test_to_dict_with_plots(self, test_db, block):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=1200, display_order=0))
        test_db.commit()
        test_db.refresh(block)

        data = block.to_dict(include_plots=True)

        assert data["name"] == "Block A"
        assert [plot["plot_number"] for plot in data["plots"]] == ["P001"]


class TestPlotModel:
    """Tests for Plot model."""

    def test_defaults(self, test_db, block):
        plot = Plot(block_id=block.id, plot_number="P001", area=1200)
        test_db.add(plot)
        test_db.commit()

        assert plot.status == PlotStatus.AVAILABLE.value
        assert plot.booked_by is None
        assert plot.to_dict()["area"] == 1200.0

    @pytest.mark.parametrize("area", [0, -10])
    def test_area_must_be_positive(self, test_db, block, area):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=area))

        with pytest.raises(IntegrityError):
            test_db.commit()

    def test_status_must_be_known(self, test_db, block):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=100, status="Sold"))

        with pytest.raises(IntegrityError):
            test_db.commit()

    def test_plot_number_unique_ignoring_case(self, test_db, block):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=100))
        test_db.commit()
        test_db.add(Plot(block_id=block.id, plot_number="p001", area=100))

        with pytest.raises(IntegrityError):
            test_db.commit()

    def test_block_delete_cascades_to_plots(self, test_db, block):
        test_db.add(Plot(block_id=block.id, plot_number="P001", area=100))
        test_db.commit()

        test_db.delete(block)
        test_db.commit()

        assert test_db.scalars(select(Plot)).all() == []


class TestPlotStatusHistoryModel:
    """Tests for PlotStatusHistory model."""

    def test_history_survives_plot_deletion(self, test_db, block):
        plot = Plot(block_id=block.id, plot_number="P001", area=100)
        test_db.add(plot)
        test_db.flush()
        test_db.add(PlotStatusHistory(
            plot_id=plot.id,
            plot_number=plot.plot_number,
            previous_status="available",
            new_status="sold",
        ))
        test_db.commit()

        test_db.delete(plot)
        test_db.commit()
        test_db.expire_all()

        entry = test_db.scalars(select(PlotStatusHistory)).one()
        assert entry.plot_id is None
        assert entry.plot_number == "P001"
        assert entry.changed_at is not None


class TestLandConfigurationModel:
    """Tests for LandConfiguration model."""

    def test_only_one_active_configuration_per_property(self, test_db, land_property):
        test_db.add_all([
            LandConfiguration(property_id=land_property.id, configuration_name="A", blocks_data=[], is_active=True),
            LandConfiguration(property_id=land_property.id, configuration_name="B", blocks_data=[], is_active=True),
        ])

        with pytest.raises(IntegrityError):
            test_db.commit()

    def test_many_inactive_configurations_allowed(self, test_db, land_property):
        test_db.add_all([
            LandConfiguration(property_id=land_property.id, configuration_name="A", blocks_data=[], is_active=True),
            LandConfiguration(property_id=land_property.id, configuration_name="B", blocks_data=[]),
            LandConfiguration(property_id=land_property.id, configuration_name="C", blocks_data=[]),
        ])
        test_db.commit()

        assert len(test_db.scalars(select(LandConfiguration)).all()) == 3

    def test_payload_round_trips_through_json_column(self, test_db, land_property):
        payload = [{"name": "Block A", "description": None, "plots": [{"plot_number": "P001", "area": 1200.0}]}]
        config = LandConfiguration(property_id=land_property.id, configuration_name="A", blocks_data=payload)
        test_db.add(config)
        test_db.commit()
        test_db.expire_all()

        assert test_db.get(LandConfiguration, config.id).blocks_data == payload
        assert "blocks_data" not in config.to_dict(include_payload=False)
