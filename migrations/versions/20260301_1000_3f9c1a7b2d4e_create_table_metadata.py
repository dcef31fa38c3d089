"""create_table_metadata

Revision ID: 3f9c1a7b2d4e
Revises:
Create Date: 2026-03-01 10:00:00.000000

Creates the table registry and saved view tables.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9c1a7b2d4e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Logical table -> physical database/table binding
    op.create_table(
        'table_configurations',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('title', sa.String(255)),
        sa.Column('ordinal', sa.Integer, nullable=False, server_default='0'),
        sa.Column('icon', sa.String(255)),
        sa.Column('create_button_text', sa.String(255)),
        sa.Column('db', sa.String(255)),
        sa.Column('table', sa.String(255)),
    )

    op.create_table(
        'table_views',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('table_name', sa.String(255), nullable=False),
        sa.Column('view_name', sa.String(255), nullable=False),
        sa.Column('is_default', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('view_type', sa.String(50), nullable=False, server_default='table'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('table_name', 'view_name', name='uq_table_views_table_view'),
    )
    op.create_index('ix_table_views_table_name', 'table_views', ['table_name'])

    # Only visible columns are stored
    op.create_table(
        'table_view_columns',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'view_id',
            sa.Integer,
            sa.ForeignKey('table_views.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('column_name', sa.String(255), nullable=False),
        sa.Column('is_visible', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('column_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('column_width', sa.Integer),
        sa.Column('sort_order', sa.String(10)),
        sa.UniqueConstraint('view_id', 'column_name', name='uq_table_view_columns_view_column'),
    )
    op.create_index('ix_table_view_columns_view_id', 'table_view_columns', ['view_id'])


def downgrade() -> None:
    op.drop_table('table_view_columns')
    op.drop_table('table_views')
    op.drop_table('table_configurations')
