"""product lifecycle and share flags

Revision ID: 0002_lifecycle_flags
Revises: 0001_initial
Create Date: 2026-10-18 00:00:01.000000

- products.is_active: discontinue a product that has sale history instead
  of deleting it
- products.low_stock_threshold: per-product reorder point (default 4)
- sales.whatsapp_sent: bill was shared with the customer
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_lifecycle_flags'
down_revision = '0001_initial'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('products') as batch_op:
        batch_op.add_column(
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1'))
        )
        batch_op.add_column(
            sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default=sa.text('4'))
        )

    with op.batch_alter_table('sales') as batch_op:
        batch_op.add_column(
            sa.Column('whatsapp_sent', sa.Boolean(), nullable=False, server_default=sa.text('0'))
        )


def downgrade():
    with op.batch_alter_table('sales') as batch_op:
        batch_op.drop_column('whatsapp_sent')

    with op.batch_alter_table('products') as batch_op:
        batch_op.drop_column('low_stock_threshold')
        batch_op.drop_column('is_active')
