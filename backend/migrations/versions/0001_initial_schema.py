"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the core store:
- products: catalogue with barcode, prices in cents and on-hand quantity
- sales: bill headers (bill_number unique, amounts in cents)
- sale_items: line items with name/barcode/price snapshots
- stock_in_events: deliveries that raised a product's quantity
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


# Frozen copy of the category set at the time of this revision
CATEGORIES = (
    "Beverages", "Biscuits", "Dairy", "Snacks", "Ice Creams", "Frozen Foods",
    "Bakery", "Fruits & Vegetables", "Meat & Seafood", "Instant Food",
    "Cooking Oil", "Spices & Masala", "Rice & Grains", "Pulses & Dals",
    "Sauces & Condiments", "Health Drinks", "Confectionery", "Personal Care",
    "Health & Wellness", "Baby Care", "Cleaning Supplies", "Detergents",
    "Household Items", "Stationery", "Pet Care", "Other",
)
PAYMENT_METHODS = ("cash", "card", "upi", "other")


def _in_list(values):
    return ", ".join("'" + v.replace("'", "''") + "'" for v in values)


def upgrade():
    # ============================================================================
    # products: catalogue and on-hand stock
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('buy_price_cents', sa.Integer(), nullable=False),
        sa.Column('sell_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode', name='uq_products_barcode'),
        sa.CheckConstraint(f"category IN ({_in_list(CATEGORIES)})", name='ck_products_category'),
        sa.CheckConstraint('buy_price_cents >= 0', name='ck_products_buy_price'),
        sa.CheckConstraint('sell_price_cents >= buy_price_cents', name='ck_products_sell_ge_buy'),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_name', 'products', ['name'])

    # ============================================================================
    # sales: bill headers
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_number', sa.String(length=32), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('discount_amount_cents', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('final_amount_cents', sa.Integer(), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('sale_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_number', name='uq_sales_bill_number'),
        sa.CheckConstraint('total_amount_cents >= 0', name='ck_sales_total'),
        sa.CheckConstraint('discount_amount_cents >= 0', name='ck_sales_discount'),
        sa.CheckConstraint('final_amount_cents >= 0', name='ck_sales_final'),
        sa.CheckConstraint(f"payment_method IN ({_in_list(PAYMENT_METHODS)})", name='ck_sales_payment_method'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])

    # ============================================================================
    # sale_items: immutable line items
    # ============================================================================
    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_price_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_sale_items_quantity'),
        sa.CheckConstraint('unit_price_cents >= 0', name='ck_sale_items_unit_price'),
        sa.CheckConstraint('total_price_cents >= 0', name='ck_sale_items_total_price'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    # ============================================================================
    # stock_in_events: deliveries
    # ============================================================================
    op.create_table(
        'stock_in_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity_added', sa.Integer(), nullable=False),
        sa.Column('purchase_price_cents', sa.Integer(), nullable=True),
        sa.Column('notes', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity_added > 0', name='ck_stock_in_quantity'),
        sa.CheckConstraint(
            'purchase_price_cents IS NULL OR purchase_price_cents >= 0',
            name='ck_stock_in_purchase_price',
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_in_events_product_id', 'stock_in_events', ['product_id'])
    op.create_index('ix_stock_in_events_created_at', 'stock_in_events', ['created_at'])


def downgrade():
    op.drop_index('ix_stock_in_events_created_at', table_name='stock_in_events')
    op.drop_index('ix_stock_in_events_product_id', table_name='stock_in_events')
    op.drop_table('stock_in_events')
    op.drop_index('ix_sale_items_product_id', table_name='sale_items')
    op.drop_index('ix_sale_items_sale_id', table_name='sale_items')
    op.drop_table('sale_items')
    op.drop_index('ix_sales_sale_date', table_name='sales')
    op.drop_table('sales')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')
