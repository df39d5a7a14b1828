"""initial_resources_shadows_folders

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 12:00:00.000000

Create the catalog tables:
1. folders - class/category taxonomy
2. resources - native resources and Drive folder mounts
3. shadow_resources - append-only overrides and hides for mirrored files
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CLASS_VALUES = ('1', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'GENERAL')
TYPE_VALUES = (
    'PDF', 'AUDIO', 'VIDEO', 'E-Book', 'Audiobook', 'E-Library',
    'GDRIVE_FOLDER', 'Other Resources', 'EXTERNAL_FILE',
)
EMBED_VALUES = ('youtube', 'audio', 'iframe', 'external')


def upgrade() -> None:
    """Create folders, resources and shadow_resources."""
    op.create_table(
        'folders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('class_name', sa.Enum(*CLASS_VALUES, name='resourceclass', length=16), nullable=False),
        sa.Column('parent_id', sa.String(36), nullable=True),
        sa.Column('path', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['parent_id'], ['folders.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_folders_class_parent', 'folders', ['class_name', 'parent_id'])

    op.create_table(
        'resources',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('link', sa.String(2048), nullable=False),
        sa.Column('class_name', sa.Enum(*CLASS_VALUES, name='resourceclass', length=16), nullable=False),
        sa.Column('category', sa.String(255), nullable=False),
        sa.Column('resource_type', sa.Enum(*TYPE_VALUES, name='resourcetype', length=32), nullable=False),
        sa.Column('embed_type', sa.Enum(*EMBED_VALUES, name='embedtype', length=16), nullable=True),
        sa.Column('folder_id', sa.String(36), nullable=True),
        sa.Column('drive_folder_id', sa.String(128), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['folder_id'], ['folders.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_resources_facets', 'resources', ['class_name', 'category', 'resource_type'])
    op.create_index('ix_resources_created_at', 'resources', ['created_at'])
    op.create_index('ix_resources_folder', 'resources', ['folder_id'])

    op.create_table(
        'shadow_resources',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('external_item_id', sa.String(128), nullable=False),
        sa.Column('mount_id', sa.String(36), nullable=True),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('link', sa.String(2048), nullable=True),
        sa.Column('class_name', sa.Enum(*CLASS_VALUES, name='resourceclass', length=16), nullable=True),
        sa.Column('category', sa.String(255), nullable=True),
        sa.Column('resource_type', sa.Enum(*TYPE_VALUES, name='resourcetype', length=32), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['mount_id'], ['resources.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_shadow_resources_external_item', 'shadow_resources', ['external_item_id'])


def downgrade() -> None:
    """Drop all catalog tables."""
    op.drop_index('ix_shadow_resources_external_item', table_name='shadow_resources')
    op.drop_table('shadow_resources')
    op.drop_index('ix_resources_folder', table_name='resources')
    op.drop_index('ix_resources_created_at', table_name='resources')
    op.drop_index('ix_resources_facets', table_name='resources')
    op.drop_table('resources')
    op.drop_index('ix_folders_class_parent', table_name='folders')
    op.drop_table('folders')
