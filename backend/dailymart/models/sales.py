from __future__ import annotations

from ..extensions import db
from ..catalog import PAYMENT_METHODS, sql_in_list
from dailymart.time_utils import to_local_iso, to_utc_z


class Sale(db.Model):
    """
    Finalized sale (bill) header.

    Immutable once created: amounts, bill number and items never change.
    The only later write is the whatsapp_sent side-channel flag.

    sale_date is LOCAL wall-clock time so day/month reports match the
    shop's calendar.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("bill_number", name="uq_sales_bill_number"),
        db.CheckConstraint("total_amount_cents >= 0", name="ck_sales_total"),
        db.CheckConstraint("discount_amount_cents >= 0", name="ck_sales_discount"),
        db.CheckConstraint("final_amount_cents >= 0", name="ck_sales_final"),
        db.CheckConstraint(f"payment_method IN ({sql_in_list(PAYMENT_METHODS)})", name="ck_sales_payment_method"),
        db.Index("ix_sales_sale_date", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable bill number (e.g., "BILL-20261018-0001")
    bill_number = db.Column(db.String(32), nullable=False)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    final_amount_cents = db.Column(db.Integer, nullable=False)

    customer_phone = db.Column(db.String(32), nullable=True)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")

    sale_date = db.Column(db.DateTime, nullable=False)
    whatsapp_sent = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SaleItem.id",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} bill={self.bill_number!r} final={self.final_amount_cents}>"

    def to_dict(self, items_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "bill_number": self.bill_number,
            "total_amount_cents": self.total_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "final_amount_cents": self.final_amount_cents,
            "customer_phone": self.customer_phone,
            "payment_method": self.payment_method,
            "sale_date": to_local_iso(self.sale_date),
            "whatsapp_sent": self.whatsapp_sent,
            "created_at": to_utc_z(self.created_at),
        }
        if items_count is not None:
            data["items_count"] = items_count
        return data


class SaleItem(db.Model):
    """
    Line item on a finalized sale.

    barcode, product_name and unit_price_cents are snapshots taken at sale
    time so historical bills stay stable when the product is renamed,
    repriced or discontinued.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sale_items_unit_price"),
        db.CheckConstraint("total_price_cents >= 0", name="ck_sale_items_total_price"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    barcode = db.Column(db.String(64), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "barcode": self.barcode,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
        }
