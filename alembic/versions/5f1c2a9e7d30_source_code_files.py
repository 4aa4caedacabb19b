"""source code files

Revision ID: 5f1c2a9e7d30
Revises:
Create Date: 2026-10-17 10:12:04.518233
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5f1c2a9e7d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    # The indexer may already have created the table
    if 'source_code_files' in inspector.get_table_names():
        return

    op.create_table(
        'source_code_files',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('file_name', sa.String(length=500), nullable=False),
        sa.Column('source_code', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_source_code_files_project_id'), 'source_code_files', ['project_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_source_code_files_project_id'), table_name='source_code_files')
    op.drop_table('source_code_files')
