"""initial_schema

Revision ID: 000000000000
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '000000000000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PLOT_STATUSES = ('available', 'booked', 'sold', 'reserved', 'blocked')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Timestamp when record was last updated'),
    ]


def upgrade() -> None:
    # Create properties table
    op.create_table(
        'properties',
        sa.Column('id', sa.String(length=36), nullable=False, comment='UUID identifier'),
        sa.Column('title', sa.String(length=255), nullable=True, comment='Listing title'),
        sa.Column('property_type', sa.String(length=50), server_default='land', nullable=False, comment='Property type (land, apartment, villa, ...)'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_properties_property_type', 'properties', ['property_type'], unique=False)

    # Create land_blocks table
    op.create_table(
        'land_blocks',
        sa.Column('id', sa.String(length=36), nullable=False, comment='UUID identifier'),
        sa.Column('property_id', sa.String(length=36), nullable=False, comment='Reference to the property this block belongs to'),
        sa.Column('name', sa.String(length=100), nullable=False, comment='Name of the block (e.g., Block A, Phase 1)'),
        sa.Column('description', sa.Text(), nullable=True, comment='Optional description of the block'),
        sa.Column('display_order', sa.Integer(), server_default=sa.text('0'), nullable=False, comment='Position of the block within the property layout'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_land_blocks_property_id', 'land_blocks', ['property_id'], unique=False)
    op.create_index('idx_land_blocks_property_created', 'land_blocks', ['property_id', 'created_at'], unique=False)
    op.create_index(
        'idx_land_blocks_unique_name_per_property',
        'land_blocks',
        ['property_id', sa.text('lower(name)')],
        unique=True
    )

    # Create land_plots table
    op.create_table(
        'land_plots',
        sa.Column('id', sa.String(length=36), nullable=False, comment='UUID identifier'),
        sa.Column('block_id', sa.String(length=36), nullable=False, comment='Reference to the block this plot belongs to'),
        sa.Column('plot_number', sa.String(length=50), nullable=False, comment='Plot identifier within the block (e.g., P001, P002)'),
        sa.Column('area', sa.Numeric(precision=12, scale=2), nullable=False, comment='Plot area in square feet'),
        sa.Column('price', sa.String(length=255), nullable=True, comment='Plot price in readable format (e.g., 15 lakhs, 1.2 crore)'),
        sa.Column('status', sa.String(length=20), server_default='available', nullable=False, comment='Current sale status of the plot'),
        sa.Column('description', sa.Text(), nullable=True, comment='Optional description or special features of the plot'),
        sa.Column('booked_by', sa.String(length=255), nullable=True, comment='User who booked or bought the plot'),
        sa.Column('booked_at', sa.DateTime(timezone=True), nullable=True, comment='When the plot was booked or sold'),
        sa.Column('display_order', sa.Integer(), server_default=sa.text('0'), nullable=False, comment='Position of the plot within its block'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['block_id'], ['land_blocks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('area > 0', name='check_plot_area_positive'),
        sa.CheckConstraint(
            'status IN ({})'.format(', '.join(f"'{status}'" for status in PLOT_STATUSES)),
            name='check_plot_status_valid'
        )
    )
    op.create_index('idx_land_plots_block_id', 'land_plots', ['block_id'], unique=False)
    op.create_index('idx_land_plots_status', 'land_plots', ['status'], unique=False)
    op.create_index('idx_land_plots_block_status', 'land_plots', ['block_id', 'status'], unique=False)
    op.create_index(
        'idx_land_plots_unique_plot_per_block',
        'land_plots',
        ['block_id', sa.text('lower(plot_number)')],
        unique=True
    )

    # Create land_plot_status_history table
    op.create_table(
        'land_plot_status_history',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('plot_id', sa.String(length=36), nullable=True, comment='Reference to the plot that had its status changed'),
        sa.Column('plot_number', sa.String(length=50), nullable=True, comment='Plot number at the time of the change'),
        sa.Column('previous_status', sa.String(length=20), nullable=True, comment='Previous status of the plot'),
        sa.Column('new_status', sa.String(length=20), nullable=False, comment='New status of the plot'),
        sa.Column('changed_by', sa.String(length=255), nullable=True, comment='User who made the status change'),
        sa.Column('change_reason', sa.Text(), nullable=True, comment='Reason for the status change'),
        sa.Column('changed_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='When the change happened'),
        sa.ForeignKeyConstraint(['plot_id'], ['land_plots.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_land_plot_status_history_plot_id', 'land_plot_status_history', ['plot_id'], unique=False)
    op.create_index('idx_land_plot_status_history_changed_at', 'land_plot_status_history', ['changed_at'], unique=False)

    # Create property_land_configurations table
    op.create_table(
        'property_land_configurations',
        sa.Column('id', sa.String(length=36), nullable=False, comment='UUID identifier'),
        sa.Column('property_id', sa.String(length=36), nullable=False, comment='Reference to the property this configuration belongs to'),
        sa.Column('configuration_name', sa.String(length=100), nullable=False, comment='Name of the configuration (e.g., Phase 1 Layout, Master Plan)'),
        sa.Column('blocks_data', sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'), nullable=False, comment='Complete blocks and plots structure'),
        sa.Column('is_active', sa.Boolean(), nullable=False, comment='Whether this configuration is currently active'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_property_land_configurations_property_id', 'property_land_configurations', ['property_id'], unique=False)
    op.create_index(
        'idx_property_land_configurations_unique_active',
        'property_land_configurations',
        ['property_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active')
    )


def downgrade() -> None:
    op.drop_index('idx_property_land_configurations_unique_active', table_name='property_land_configurations')
    op.drop_index('idx_property_land_configurations_property_id', table_name='property_land_configurations')
    op.drop_table('property_land_configurations')

    op.drop_index('idx_land_plot_status_history_changed_at', table_name='land_plot_status_history')
    op.drop_index('idx_land_plot_status_history_plot_id', table_name='land_plot_status_history')
    op.drop_table('land_plot_status_history')

    op.drop_index('idx_land_plots_unique_plot_per_block', table_name='land_plots')
    op.drop_index('idx_land_plots_block_status', table_name='land_plots')
    op.drop_index('idx_land_plots_status', table_name='land_plots')
    op.drop_index('idx_land_plots_block_id', table_name='land_plots')
    op.drop_table('land_plots')

    op.drop_index('idx_land_blocks_unique_name_per_property', table_name='land_blocks')
    op.drop_index('idx_land_blocks_property_created', table_name='land_blocks')
    op.drop_index('idx_land_blocks_property_id', table_name='land_blocks')
    op.drop_table('land_blocks')

    op.drop_index('idx_properties_property_type', table_name='properties')
    op.drop_table('properties')
