"""create user, game_record and payout tables

Revision ID: 5c2e9a7d1b04
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d1b04'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    tables = set(insp.get_table_names())

    if 'user' not in tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'game_record' not in tables:
        op.create_table(
            'game_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_code', sa.String(length=8), nullable=False),
            sa.Column('player', sa.String(length=64), nullable=True),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('elapsed', sa.Integer(), nullable=False),
            sa.Column('move_count', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.Float(), nullable=False),
        )
        op.create_index('ix_game_record_game_code', 'game_record', ['game_code'])

    if 'payout' not in tables:
        op.create_table(
            'payout',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('recipient', sa.String(length=64), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('created_at', sa.Float(), nullable=False),
        )
        op.create_index('ix_payout_recipient', 'payout', ['recipient'])


def downgrade():
    op.drop_index('ix_payout_recipient', table_name='payout')
    op.drop_table('payout')
    op.drop_index('ix_game_record_game_code', table_name='game_record')
    op.drop_table('game_record')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
