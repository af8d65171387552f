from __future__ import annotations

from ..extensions import db
from ..catalog import PRODUCT_CATEGORIES, sql_in_list
from dailymart.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    STOCK DESIGN DECISION:
    Product.quantity is the authoritative on-hand count. It is never set
    directly by catalogue edits; it only moves through relative deltas
    applied by the stock ledger (stock-in events and sale decrements).

    LIFECYCLE:
    - is_active=False marks a discontinued product: hidden from sale and
      barcode lookup, kept so historical sale items still resolve.
    - Hard delete is only allowed while no sale item references the product.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.CheckConstraint(f"category IN ({sql_in_list(PRODUCT_CATEGORIES)})", name="ck_products_category"),
        db.CheckConstraint("buy_price_cents >= 0", name="ck_products_buy_price"),
        db.CheckConstraint("sell_price_cents >= buy_price_cents", name="ck_products_sell_ge_buy"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    barcode = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(32), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    buy_price_cents = db.Column(db.Integer, nullable=False)
    sell_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=4)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    stock_in_events = db.relationship(
        "StockInEvent",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} qty={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < self.low_stock_threshold

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "category": self.category,
            "buy_price_cents": self.buy_price_cents,
            "sell_price_cents": self.sell_price_cents,
            "quantity": self.quantity,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockInEvent(db.Model):
    """A delivery/restock that increased a product's on-hand quantity."""
    __tablename__ = "stock_in_events"
    __table_args__ = (
        db.CheckConstraint("quantity_added > 0", name="ck_stock_in_quantity"),
        db.CheckConstraint(
            "purchase_price_cents IS NULL OR purchase_price_cents >= 0",
            name="ck_stock_in_purchase_price",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quantity_added = db.Column(db.Integer, nullable=False)

    # Legacy/optional: cost of this delivery; reports use Product.buy_price_cents
    purchase_price_cents = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product", back_populates="stock_in_events")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "barcode": self.product.barcode if self.product else None,
            "product_name": self.product.name if self.product else None,
            "quantity_added": self.quantity_added,
            "purchase_price_cents": self.purchase_price_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
