# dailymart/routes/inventory.py
"""
Stock routes: stock-in (deliveries), stock history and low-stock alerts.

Stock never moves through the product endpoints; deliveries come in here
and sales take stock out through /api/sales.
"""
from flask import Blueprint, current_app, request

from ..errors import ValidationError
from ..validation import coerce_int
from ..services import stock_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/stock-in")
def stock_in_route():
    """
    Receive stock for a product.

    Body: {"product_id", "quantity", "purchase_price_cents"?, "notes"?}
    """
    payload = request.get_json(silent=True) or {}

    missing = [k for k in ("product_id", "quantity") if payload.get(k) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    price = payload.get("purchase_price_cents")
    notes = payload.get("notes")
    if notes is not None:
        notes = str(notes).strip()
        if len(notes) > 255:
            raise ValidationError("notes exceeds max length 255")

    event = stock_service.add_stock_in(
        product_id=coerce_int("product_id", payload["product_id"]),
        quantity=coerce_int("quantity", payload["quantity"]),
        purchase_price_cents=coerce_int("purchase_price_cents", price) if price is not None else None,
        notes=notes or None,
    )
    return {"success": True, "event": event.to_dict(), "quantity": event.product.quantity}, 201


@inventory_bp.get("/stock-history")
def stock_history_route():
    product_id = request.args.get("product_id", type=int)
    limit = request.args.get("limit", type=int)
    events = stock_service.get_stock_history(product_id=product_id, limit=limit)
    return {"items": [e.to_dict() for e in events], "count": len(events)}


@inventory_bp.get("/low-stock")
def low_stock_route():
    """Active products below their threshold (or ?threshold=N), lowest first."""
    threshold = request.args.get("threshold", type=int)
    products = stock_service.get_low_stock(threshold)
    current_app.logger.debug("Low stock query returned %d product(s)", len(products))
    return {"items": [p.to_dict() for p in products], "count": len(products)}
