"""001: create orders table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(32)     PRIMARY KEY,
            project_id          VARCHAR(64)     NOT NULL,
            order_number        VARCHAR(32)     NOT NULL,
            items               JSONB           NOT NULL DEFAULT '[]'::jsonb,
            total_amount        BIGINT          NOT NULL DEFAULT 0,
            status              VARCHAR(32)     NOT NULL,
            approvals           JSONB           NOT NULL DEFAULT '[]'::jsonb,
            created_by          VARCHAR(64)     NOT NULL,
            created_by_name     VARCHAR(128),
            initiated_by        VARCHAR(64)     NOT NULL,
            payment             JSONB,
            driver_info         JSONB,
            fulfillment_stage   VARCHAR(32),
            delivery_outcome    VARCHAR(32),
            pending_items       JSONB           NOT NULL DEFAULT '[]'::jsonb,
            admin_state         VARCHAR(16),
            clarification_note  TEXT,
            cancel_reason       VARCHAR(255),
            notes               TEXT,
            updated_by_name     VARCHAR(128),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            confirmed_at        TIMESTAMPTZ,
            delivery_date       TIMESTAMPTZ,
            estimated_delivery  TIMESTAMPTZ,
            CONSTRAINT ck_orders_total_amount_gte_0 CHECK (total_amount >= 0),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('clarification_requested', 'order_received', 'pending_confirmation',
                           'confirmed', 'material_loading', 'dispatched', 'delivered',
                           'partially_completed', 'completed', 'cancelled', 'on_hold')
            ),
            CONSTRAINT ck_orders_fulfillment_stage CHECK (
                fulfillment_stage IS NULL
                OR fulfillment_stage IN ('material_loading', 'dispatched', 'delivered')
            ),
            CONSTRAINT ck_orders_delivery_outcome CHECK (
                delivery_outcome IS NULL OR delivery_outcome IN ('partially_completed')
            ),
            CONSTRAINT ck_orders_admin_state CHECK (
                admin_state IS NULL OR admin_state IN ('cancelled', 'on_hold')
            ),
            CONSTRAINT ck_orders_items_array     CHECK (jsonb_typeof(items) = 'array'),
            CONSTRAINT ck_orders_approvals_array CHECK (jsonb_typeof(approvals) = 'array')
        );
    """)
    op.execute("CREATE INDEX idx_orders_project_created ON orders (project_id, created_at DESC);")
    op.execute("COMMENT ON TABLE orders IS 'Purchase orders: one row per aggregate, nested parts in JSONB';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
