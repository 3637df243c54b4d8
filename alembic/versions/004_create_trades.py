"""004: create trades table

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trades (
            id              VARCHAR(64)     PRIMARY KEY,
            buyer_id        VARCHAR(64)     NOT NULL,
            seller_id       VARCHAR(64)     NOT NULL,
            buy_order_id    VARCHAR(64)     NOT NULL REFERENCES orders (id),
            sell_order_id   VARCHAR(64)     NOT NULL REFERENCES orders (id),
            amount_mg       BIGINT          NOT NULL,
            price_per_gram  BIGINT          NOT NULL,
            fee             BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'COMPLETED',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trades_amount CHECK (amount_mg > 0),
            CONSTRAINT ck_trades_price  CHECK (price_per_gram >= 1),
            CONSTRAINT ck_trades_fee    CHECK (fee >= 0),
            CONSTRAINT ck_trades_status CHECK (status IN ('PENDING', 'COMPLETED', 'FAILED'))
        );
    """)
    op.execute("CREATE INDEX idx_trades_buyer ON trades (buyer_id, created_at DESC);")
    op.execute("CREATE INDEX idx_trades_seller ON trades (seller_id, created_at DESC);")
    op.execute("CREATE INDEX idx_trades_buy_order ON trades (buy_order_id);")
    op.execute("CREATE INDEX idx_trades_sell_order ON trades (sell_order_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trades CASCADE;")
