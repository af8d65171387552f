# dailymart/services/products_service.py
"""
Product catalogue operations.

Stock never moves through this module: quantity can be seeded when a
product is created, after that only the stock ledger changes it.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ProductNotFoundError, ValidationError
from ..models import Product
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_product

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "barcode", "name", "category", "buy_price_cents", "sell_price_cents",
        "quantity", "low_stock_threshold", "is_active",
    },
    required_on_create={"barcode", "name", "category", "buy_price_cents", "sell_price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "barcode", "name", "category", "buy_price_cents", "sell_price_cents",
        "low_stock_threshold", "is_active",
    },
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_CREATE_POLICY.writable_fields:
            continue
        setattr(p, k, v)


def _ensure_barcode_free(barcode: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ValidationError("Barcode already exists.", details={"barcode": barcode})


def list_products(*, include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def search_products(term: str, *, include_inactive: bool = False) -> list[Product]:
    """Substring match on barcode, name or category."""
    term = (term or "").strip()
    if not term:
        return list_products(include_inactive=include_inactive)

    pattern = f"%{term}%"
    query = db.session.query(Product).filter(
        or_(
            Product.barcode.ilike(pattern),
            Product.name.ilike(pattern),
            Product.category.ilike(pattern),
        )
    )
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product


def get_product_by_barcode(barcode: str) -> Product | None:
    """Sellable product for a scanned barcode; None when missing or discontinued."""
    barcode = (barcode or "").strip()
    if not barcode:
        return None
    return (
        db.session.query(Product)
        .filter(Product.barcode == barcode, Product.is_active.is_(True))
        .first()
    )


def add_product(fields: dict) -> Product:
    """
    Create a product from raw fields.

    Raises:
        ValidationError: missing/invalid field, unknown category,
            sell price below buy price, duplicate barcode
    """
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_CREATE_POLICY, partial=False)
    enforce_rules_product(patch)
    _ensure_barcode_free(patch["barcode"])

    p = Product(
        quantity=0,
        low_stock_threshold=current_app.config.get("LOW_STOCK_DEFAULT", 4),
        is_active=True,
    )
    apply_product_patch(p, patch)
    db.session.add(p)

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ValidationError("Product violates a store constraint", details={"reason": str(exc.orig)}) from exc
    return p


def update_product(product_id: int, fields: dict) -> Product:
    """
    Patch catalogue fields of a product.

    quantity is not writable here; use stock-in to add stock.
    """
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_UPDATE_POLICY, partial=True)

    p = get_product(product_id)
    enforce_rules_product(patch, current=p)

    if "barcode" in patch and patch["barcode"] != p.barcode:
        _ensure_barcode_free(patch["barcode"], exclude_id=p.id)

    apply_product_patch(p, patch)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ValidationError("Product violates a store constraint", details={"reason": str(exc.orig)}) from exc
    return p
