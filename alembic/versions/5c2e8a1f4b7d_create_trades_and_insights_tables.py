"""Create trades and insights tables

Revision ID: 5c2e8a1f4b7d
Revises:
Create Date: 2025-03-14 10:12:41.118204

"""
from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

# revision identifiers, used by Alembic.
revision: str = '5c2e8a1f4b7d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the `trades` journal table and the `insights` table that stores
    generated insight batches, both keyed by the owning user.
    """
    op.create_table(
        'trades',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('ticker', sa.String(), nullable=False),
        sa.Column('entry_price', sa.Float(), nullable=False),
        sa.Column('exit_price', sa.Float(), nullable=True),
        sa.Column('size', sa.Float(), nullable=False),
        sa.Column('confidence', sa.Integer(), nullable=False),
        sa.Column('setup_tag', sa.String(), nullable=False),
        sa.Column('emotion_tag', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('trade_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_trades_id', 'trades', ['id'])
    op.create_index('ix_trades_user_id', 'trades', ['user_id'])
    op.create_index('ix_trades_ticker', 'trades', ['ticker'])
    op.create_index('ix_trades_trade_date', 'trades', ['trade_date'])

    op.create_table(
        'insights',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('insight_type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_insights_id', 'insights', ['id'])
    op.create_index('ix_insights_user_id', 'insights', ['user_id'])
    op.create_index('ix_insights_created_at', 'insights', ['created_at'])


def downgrade() -> None:
    """
    Drop the `insights` and `trades` tables.
    """
    op.drop_index('ix_insights_created_at', table_name='insights')
    op.drop_index('ix_insights_user_id', table_name='insights')
    op.drop_index('ix_insights_id', table_name='insights')
    op.drop_table('insights')

    op.drop_index('ix_trades_trade_date', table_name='trades')
    op.drop_index('ix_trades_ticker', table_name='trades')
    op.drop_index('ix_trades_user_id', table_name='trades')
    op.drop_index('ix_trades_id', table_name='trades')
    op.drop_table('trades')
