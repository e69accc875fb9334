"""create score table

Revision ID: 5c2e9a71b0d4
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a71b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'score' in insp.get_table_names():
        return
    op.create_table(
        'score',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=128), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('streak', sa.Integer(), nullable=False),
        sa.Column('multiplier', sa.Integer(), nullable=False),
        sa.Column('session_score', sa.Integer(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    with op.batch_alter_table('score') as batch_op:
        batch_op.create_index('ix_score_user_id', ['user_id'], unique=True)
        batch_op.create_index('ix_score_timestamp', ['timestamp'], unique=False)


def downgrade():
    with op.batch_alter_table('score') as batch_op:
        batch_op.drop_index('ix_score_timestamp')
        batch_op.drop_index('ix_score_user_id')
    op.drop_table('score')
