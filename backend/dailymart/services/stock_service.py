# Overview: Service-layer operations for the stock ledger; encapsulates business logic and database work.

# dailymart/services/stock_service.py
"""
Stock ledger invariants (authoritative)

- Product.quantity is never negative (also enforced by a CHECK constraint).
- Every change is RELATIVE: quantity = quantity + delta, applied in SQL.
  Nothing ever writes an absolute quantity, so a stock-in and a sale
  decrement cannot overwrite each other's effect.
- A negative delta is applied only when the row still has enough stock at
  UPDATE time (guarded WHERE clause), so the check and the write are one
  statement.
- adjust() never commits: it joins the caller's transaction. Stock-in and
  sales each commit exactly once, after all of their writes succeeded.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..errors import InsufficientStockError, ProductNotFoundError
from ..models import Product, StockInEvent
from ..validation import enforce_rules_stock_in
from .concurrency import begin_write, ensure_no_pending_writes, lock_for_update, run_with_retry


def _get_product(product_id: int, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product


def adjust(product_id: int, delta: int) -> int:
    """
    Apply a relative quantity change and return the new quantity.

    Raises:
        ProductNotFoundError: no product with that id
        InsufficientStockError: delta < 0 and quantity + delta < 0
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.quantity + delta >= 0)
        .values(quantity=Product.quantity + delta)
        .execution_options(synchronize_session="fetch")
    )
    result = db.session.execute(stmt)

    if not result.rowcount:
        product = _get_product(product_id)
        raise InsufficientStockError(
            product_id=product.id,
            product_name=product.name,
            available=product.quantity,
            requested=-delta,
        )

    new_quantity = (
        db.session.query(Product.quantity).filter(Product.id == product_id).scalar()
    )
    return int(new_quantity)


def get_low_stock(threshold: int | None = None) -> list[Product]:
    """
    Active products running low, most urgent first.

    Low means quantity < product.low_stock_threshold, or quantity < threshold
    when an override is supplied.
    """
    limit_expr = Product.low_stock_threshold if threshold is None else threshold
    return (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.quantity < limit_expr)
        .order_by(Product.quantity.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )


def add_stock_in(
    *,
    product_id: int,
    quantity: int,
    purchase_price_cents: int | None = None,
    notes: str | None = None,
) -> StockInEvent:
    """
    Record a delivery and raise the product's quantity by exactly `quantity`.

    The event row and the quantity increase commit together or not at all.
    """
    enforce_rules_stock_in({
        "quantity_added": quantity,
        "purchase_price_cents": purchase_price_cents,
    })
    ensure_no_pending_writes()

    def _op():
        begin_write()
        product = _get_product(product_id, lock=True)

        event = StockInEvent(
            product_id=product.id,
            quantity_added=quantity,
            purchase_price_cents=purchase_price_cents,
            notes=notes,
        )
        db.session.add(event)
        db.session.flush()

        new_quantity = adjust(product.id, quantity)

        db.session.commit()
        current_app.logger.info(
            "Stock-in: product=%s +%d -> %d", product.barcode, quantity, new_quantity
        )
        return event

    return run_with_retry(_op)


def get_stock_history(*, product_id: int | None = None, limit: int | None = None) -> list[StockInEvent]:
    """Stock-in events, newest first, optionally for one product."""
    query = db.session.query(StockInEvent).join(Product, StockInEvent.product_id == Product.id)
    if product_id is not None:
        query = query.filter(StockInEvent.product_id == product_id)
    query = query.order_by(StockInEvent.created_at.desc(), StockInEvent.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()
