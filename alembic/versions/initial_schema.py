"""initial schema: users, reports, attachments, routes, buses

Creates the tables backing accounts, feedback / lost-and-found reports,
uploaded attachment metadata and the route / bus directory.

Revision ID: initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('student', 'admin', 'driver', name='userrole'), nullable=False),
        sa.Column('roll_number_or_staff_id', sa.String(length=60), nullable=True),
        sa.Column('assigned_bus_route_no', sa.String(length=120), nullable=True),
        sa.Column('boarding_point', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_name', 'users', ['name'])

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('author_user_id', sa.Integer(), nullable=True),
        sa.Column('author_name', sa.String(length=120), nullable=True),
        sa.Column('route', sa.String(length=120), nullable=True),
        sa.Column('bus_no', sa.String(length=40), nullable=True),
        sa.Column('issue', sa.String(length=120), nullable=True),
        sa.Column('item', sa.String(length=200), nullable=True),
        sa.Column('description', sa.String(length=4000), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('submitted_on', sa.DateTime(timezone=True), nullable=False),
        sa.Column('resolution', sa.JSON(), nullable=True),
        sa.Column('conversation', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_reports_kind', 'reports', ['kind'])
    op.create_index('ix_reports_author_user_id', 'reports', ['author_user_id'])
    op.create_index('ix_reports_route', 'reports', ['route'])
    op.create_index('ix_reports_status', 'reports', ['status'])
    op.create_index('ix_reports_submitted_on', 'reports', ['submitted_on'])
    op.create_index('ix_reports_submitted_on_id', 'reports', ['submitted_on', 'id'])

    op.create_table(
        'attachments',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('storage_key', sa.String(length=300), nullable=False),
        sa.Column('uploaded_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'routes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('stops', sa.JSON(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
    )
    op.create_index('ix_routes_name', 'routes', ['name'], unique=True)

    op.create_table(
        'buses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('bus_no', sa.String(length=40), nullable=False),
        sa.Column('route', sa.String(length=120), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('driver', sa.String(length=120), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Idle'),
    )
    op.create_index('ix_buses_bus_no', 'buses', ['bus_no'], unique=True)
    op.create_index('ix_buses_route', 'buses', ['route'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('buses')
    op.drop_table('routes')
    op.drop_table('attachments')
    op.drop_table('reports')
    op.drop_table('users')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
