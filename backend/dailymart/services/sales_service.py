"""
Sales Service - all-or-nothing sale processing

WHY: A sale touches three things at once: the bill header, its line items
and the stock of every product on the bill. They commit together or not at
all. Nothing is ever oversold, no bill number is reused and no partial sale
is ever visible.

The cart is a plain value object owned by the caller (one per checkout
session); this module keeps no cart state of its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..catalog import PaymentMethod
from ..errors import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    ProductInUseError,
    ProductNotFoundError,
    StoreError,
    ValidationError,
)
from ..models import Product, Sale, SaleItem
from ..validation import MAX_PRICE_CENTS, MAX_QUANTITY, coerce_int, validate_payment_method
from dailymart.time_utils import localnow
from . import stock_service
from .billing_service import next_bill_number
from .concurrency import begin_write, ensure_no_pending_writes, lock_for_update, run_with_retry


# =============================================================================
# Cart value objects
# =============================================================================

@dataclass
class CartLine:
    """
    One product-quantity-price entry in a cart.

    Exactly one of barcode / product_id identifies the product.
    unit_price_cents overrides the product's sell price for this line only.
    """
    quantity: int
    barcode: str | None = None
    product_id: int | None = None
    unit_price_cents: int | None = None

    @property
    def key(self) -> tuple[str, object]:
        if self.product_id is not None:
            return ("id", self.product_id)
        return ("barcode", self.barcode)

    def validate(self) -> None:
        if (self.barcode is None) == (self.product_id is None):
            raise ValidationError("Each cart line needs exactly one of barcode or product_id")
        if self.barcode is not None and not str(self.barcode).strip():
            raise ValidationError("barcode cannot be blank")
        if self.quantity <= 0:
            raise ValidationError("quantity must be > 0", details={"line": self.key[1]})
        if self.quantity > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}", details={"line": self.key[1]})
        if self.unit_price_cents is not None:
            if self.unit_price_cents < 0:
                raise ValidationError("unit_price_cents must be >= 0", details={"line": self.key[1]})
            if self.unit_price_cents > MAX_PRICE_CENTS:
                raise ValidationError(f"unit_price_cents cannot exceed {MAX_PRICE_CENTS}")

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        if not isinstance(data, dict):
            raise ValidationError("Each cart line must be an object")
        if "quantity" not in data:
            raise ValidationError("quantity is required on every cart line")
        product_id = data.get("product_id")
        price = data.get("unit_price_cents")
        barcode = data.get("barcode")
        return cls(
            quantity=coerce_int("quantity", data["quantity"]),
            barcode=str(barcode).strip() if barcode is not None else None,
            product_id=coerce_int("product_id", product_id) if product_id is not None else None,
            unit_price_cents=coerce_int("unit_price_cents", price) if price is not None else None,
        )


@dataclass
class Cart:
    """
    Session-scoped cart owned by the caller.

    Adding the same product twice bumps the existing line, the way a
    scanner re-scan does at the counter.
    """
    lines: list[CartLine] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def _find(self, key) -> CartLine | None:
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def add(
        self,
        *,
        barcode: str | None = None,
        product_id: int | None = None,
        quantity: int = 1,
        unit_price_cents: int | None = None,
    ) -> CartLine:
        line = CartLine(
            quantity=quantity,
            barcode=barcode,
            product_id=product_id,
            unit_price_cents=unit_price_cents,
        )
        line.validate()
        existing = self._find(line.key)
        if existing is not None:
            existing.quantity += quantity
            if unit_price_cents is not None:
                existing.unit_price_cents = unit_price_cents
            return existing
        self.lines.append(line)
        return line

    def set_quantity(self, index: int, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove(index)
            return
        self.lines[index].quantity = quantity

    def override_price(self, index: int, unit_price_cents: int | None) -> None:
        """Override (or with None, restore) the unit price of one line."""
        line = self.lines[index]
        line.unit_price_cents = unit_price_cents
        line.validate()

    def remove(self, index: int) -> None:
        del self.lines[index]

    def clear(self) -> None:
        self.lines.clear()

    def subtotal_cents(self, prices: dict) -> int:
        """
        Preview total for display.

        prices maps a line's barcode or product_id to its current sell
        price in cents; overridden lines use their own price.
        """
        total = 0
        for line in self.lines:
            unit = line.unit_price_cents
            if unit is None:
                unit = prices[line.key[1]]
            total += unit * line.quantity
        return total

    @classmethod
    def from_list(cls, items) -> "Cart":
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        cart = cls()
        for raw in items:
            line = CartLine.from_dict(raw)
            line.validate()
            existing = cart._find(line.key)
            if existing is not None:
                existing.quantity += line.quantity
                if line.unit_price_cents is not None:
                    existing.unit_price_cents = line.unit_price_cents
            else:
                cart.lines.append(line)
        return cart


@dataclass(frozen=True)
class SaleMeta:
    payment_method: str = PaymentMethod.CASH
    customer_phone: str | None = None
    discount_amount_cents: int = 0

    def validate(self) -> None:
        validate_payment_method(self.payment_method)
        if self.discount_amount_cents < 0:
            raise ValidationError("discount_amount_cents must be >= 0")
        if self.discount_amount_cents > MAX_PRICE_CENTS:
            raise ValidationError(f"discount_amount_cents cannot exceed {MAX_PRICE_CENTS}")
        if self.customer_phone is not None and len(self.customer_phone) > 32:
            raise ValidationError("customer_phone exceeds max length 32")

    @classmethod
    def from_dict(cls, data: dict | None) -> "SaleMeta":
        data = data or {}
        discount = data.get("discount_amount_cents")
        phone = data.get("customer_phone")
        phone = str(phone).strip() if phone is not None else None
        return cls(
            payment_method=str(data.get("payment_method") or PaymentMethod.CASH).strip().lower(),
            customer_phone=phone or None,
            discount_amount_cents=coerce_int("discount_amount_cents", discount) if discount is not None else 0,
        )


@dataclass(frozen=True)
class SaleReceipt:
    bill_number: str
    sale_id: int
    total_amount_cents: int
    discount_amount_cents: int
    final_amount_cents: int

    def to_dict(self) -> dict:
        return {
            "bill_number": self.bill_number,
            "sale_id": self.sale_id,
            "total_amount_cents": self.total_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "final_amount_cents": self.final_amount_cents,
        }


def compute_final_amount(total_cents: int, discount_cents: int) -> int:
    """final = total - discount, never below zero."""
    return max(0, total_cents - discount_cents)


# =============================================================================
# Sale creation
# =============================================================================

def _resolve_product(line: CartLine) -> Product:
    query = db.session.query(Product)
    if line.product_id is not None:
        query = query.filter(Product.id == line.product_id)
    else:
        query = query.filter(Product.barcode == line.barcode)
    product = lock_for_update(query).populate_existing().first()

    if product is None or not product.is_active:
        raise ProductNotFoundError(
            "Product not found" if product is None else f"Product {product.name} is discontinued",
            details={"barcode": line.barcode, "product_id": line.product_id},
        )
    return product


def _validate_on_hand(resolved: list[tuple[CartLine, Product]]) -> None:
    # Lines may hit the same product twice (barcode and id); check the sum.
    requested: dict[int, int] = {}
    products: dict[int, Product] = {}
    for line, product in resolved:
        requested[product.id] = requested.get(product.id, 0) + line.quantity
        products[product.id] = product

    for product_id, qty in requested.items():
        product = products[product_id]
        if product.quantity < qty:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=product.quantity,
                requested=qty,
            )


def _create_sale_locked(cart: Cart, meta: SaleMeta, sold_at: datetime) -> SaleReceipt:
    resolved = [(line, _resolve_product(line)) for line in cart.lines]
    _validate_on_hand(resolved)

    priced = []
    total_cents = 0
    for line, product in resolved:
        unit_price = line.unit_price_cents if line.unit_price_cents is not None else product.sell_price_cents
        line_total = unit_price * line.quantity
        total_cents += line_total
        priced.append((line, product, unit_price, line_total))

    final_cents = compute_final_amount(total_cents, meta.discount_amount_cents)
    bill_number = next_bill_number(on=sold_at.date())

    sale = Sale(
        bill_number=bill_number,
        total_amount_cents=total_cents,
        discount_amount_cents=meta.discount_amount_cents,
        final_amount_cents=final_cents,
        customer_phone=meta.customer_phone,
        payment_method=meta.payment_method,
        sale_date=sold_at,
        whatsapp_sent=False,
    )
    db.session.add(sale)
    db.session.flush()

    for line, product, unit_price, line_total in priced:
        db.session.add(SaleItem(
            sale_id=sale.id,
            product_id=product.id,
            barcode=product.barcode,
            product_name=product.name,
            quantity=line.quantity,
            unit_price_cents=unit_price,
            total_price_cents=line_total,
        ))
    db.session.flush()

    for line, product, _, _ in priced:
        stock_service.adjust(product.id, -line.quantity)

    return SaleReceipt(
        bill_number=bill_number,
        sale_id=sale.id,
        total_amount_cents=total_cents,
        discount_amount_cents=meta.discount_amount_cents,
        final_amount_cents=final_cents,
    )


def create_sale(cart: Cart, meta: SaleMeta | None = None, *, sold_at: datetime | None = None) -> SaleReceipt:
    """
    Validate a cart, decrement stock, persist the bill and number it,
    as one transaction.

    Args:
        cart: caller-owned cart
        meta: payment method, customer phone, discount
        sold_at: local timestamp of the sale (defaults to now); also picks
            the day scope of a daily bill number

    Raises:
        EmptyCartError: the cart has no lines (the store is not touched)
        ValidationError: bad line or meta values (before any write)
        ProductNotFoundError: unknown or discontinued product
        InsufficientStockError: any product short of the requested total
        StoreError: persistence failure; nothing was written
    """
    if cart is None or not cart.lines:
        raise EmptyCartError()

    meta = meta or SaleMeta()
    meta.validate()
    for line in cart.lines:
        line.validate()

    sold_at = sold_at or localnow()
    ensure_no_pending_writes()

    def _op() -> SaleReceipt:
        begin_write()
        receipt = _create_sale_locked(cart, meta, sold_at)
        db.session.commit()
        return receipt

    try:
        receipt = run_with_retry(_op)
    except IntegrityError as exc:
        current_app.logger.error("Sale rejected by store constraint: %s", exc.orig)
        raise StoreError("Sale could not be stored", details={"reason": str(exc.orig)}) from exc
    except (InsufficientStockError, ProductNotFoundError) as exc:
        current_app.logger.info("Sale rejected: %s", exc)
        raise

    current_app.logger.info(
        "Sale %s committed: %d line(s), final=%d cents",
        receipt.bill_number, len(cart.lines), receipt.final_amount_cents,
    )
    return receipt


# =============================================================================
# Product deletion (guarded by sale history)
# =============================================================================

def count_sales_referencing(product_id: int) -> int:
    return int(
        db.session.query(func.count(func.distinct(SaleItem.sale_id)))
        .filter(SaleItem.product_id == product_id)
        .scalar() or 0
    )


def delete_product(product_id: int) -> None:
    """
    Hard-delete a product that has never been sold.

    Raises:
        ProductNotFoundError: no such product
        ProductInUseError: sales reference it; count = number of such sales
    """
    ensure_no_pending_writes()

    def _op():
        begin_write()
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise ProductNotFoundError("Product not found", details={"product_id": product_id})

        count = count_sales_referencing(product_id)
        if count:
            raise ProductInUseError(product_id=product_id, count=count)

        db.session.delete(product)
        db.session.commit()
        current_app.logger.info("Product %s (%s) deleted", product_id, product.barcode)

    try:
        run_with_retry(_op)
    except IntegrityError as exc:
        raise StoreError("Product could not be deleted", details={"reason": str(exc.orig)}) from exc


# =============================================================================
# Sale reads
# =============================================================================

def _day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def items_count_subquery():
    return (
        db.session.query(
            SaleItem.sale_id.label("sale_id"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("items_count"),
        )
        .group_by(SaleItem.sale_id)
        .subquery()
    )


def get_sales(start: date, end: date) -> list[tuple[Sale, int]]:
    """Sales whose local sale_date falls in [start, end], newest first, with item counts."""
    if end < start:
        raise ValidationError("end date is before start date")
    lo, hi = _day_bounds(start, end)
    counts = items_count_subquery()
    rows = (
        db.session.query(Sale, func.coalesce(counts.c.items_count, 0))
        .outerjoin(counts, counts.c.sale_id == Sale.id)
        .filter(Sale.sale_date >= lo, Sale.sale_date < hi)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )
    return [(sale, int(count)) for sale, count in rows]


def get_sale_items(sale_id: int) -> list[SaleItem]:
    if db.session.get(Sale, sale_id) is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return db.session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id.asc()).all()


def get_sale_by_bill_number(bill_number: str) -> Sale:
    sale = db.session.query(Sale).filter_by(bill_number=bill_number).first()
    if sale is None:
        raise NotFoundError("Sale not found", details={"bill_number": bill_number})
    return sale


def mark_whatsapp_sent(bill_number: str) -> Sale:
    """Flag a bill as shared with the customer. Amounts and items stay untouched."""
    sale = get_sale_by_bill_number(bill_number)
    if not sale.whatsapp_sent:
        sale.whatsapp_sent = True
        db.session.commit()
    return sale
