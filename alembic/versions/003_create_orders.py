"""003: create orders table

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            client_order_id     VARCHAR(64),
            user_id             VARCHAR(64)     NOT NULL,
            side                VARCHAR(4)      NOT NULL,
            amount_mg           BIGINT          NOT NULL,
            remaining_mg        BIGINT          NOT NULL,
            price_per_gram      BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'OPEN',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_user_client_order_id UNIQUE (user_id, client_order_id),
            CONSTRAINT ck_orders_side       CHECK (side IN ('BUY', 'SELL')),
            CONSTRAINT ck_orders_amount     CHECK (amount_mg > 0),
            CONSTRAINT ck_orders_remaining  CHECK (remaining_mg >= 0 AND remaining_mg <= amount_mg),
            CONSTRAINT ck_orders_price      CHECK (price_per_gram >= 1),
            CONSTRAINT ck_orders_status     CHECK (
                status IN ('OPEN', 'PARTIAL', 'FILLED', 'CANCELLED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_time ON orders (user_id, created_at DESC, id DESC);")
    # Candidate scan: opposite side, exact price, oldest first.
    op.execute("""
        CREATE INDEX idx_orders_book_active
        ON orders (side, price_per_gram, created_at, id)
        WHERE status IN ('OPEN', 'PARTIAL') AND remaining_mg > 0;
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
