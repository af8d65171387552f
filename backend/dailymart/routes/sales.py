# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# dailymart/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request

from ..errors import ValidationError
from ..services import sales_service
from ..services.billing_service import next_bill_number
from ..time_utils import local_today, parse_iso_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _date_arg(name: str, default):
    raw = request.args.get(name)
    try:
        parsed = parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date")
    return parsed if parsed is not None else default


@sales_bp.post("")
def create_sale_route():
    """
    Check out a cart.

    Body:
    {
        "items": [{"barcode": "123", "quantity": 2, "unit_price_cents"?: 4500}, ...],
        "payment_method": "cash" | "card" | "upi" | "other",
        "customer_phone"?: "...",
        "discount_amount_cents"?: 500
    }
    """
    payload = request.get_json(silent=True) or {}

    cart = sales_service.Cart.from_list(payload.get("items"))
    meta = sales_service.SaleMeta.from_dict(payload)

    receipt = sales_service.create_sale(cart, meta)
    return receipt.to_dict(), 201


@sales_bp.get("")
def list_sales_route():
    """Sales between ?start= and ?end= (local dates, inclusive; default today)."""
    today = local_today()
    start = _date_arg("start", today)
    end = _date_arg("end", start if request.args.get("start") else today)

    rows = sales_service.get_sales(start, end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "items": [sale.to_dict(items_count=count) for sale, count in rows],
        "count": len(rows),
    }


@sales_bp.get("/next-bill-number")
def next_bill_number_route():
    """Advisory preview; the real number is assigned when the sale commits."""
    return {"bill_number": next_bill_number()}


@sales_bp.get("/<int:sale_id>/items")
def sale_items_route(sale_id: int):
    items = sales_service.get_sale_items(sale_id)
    return {"items": [i.to_dict() for i in items], "count": len(items)}


@sales_bp.get("/bill/<bill_number>")
def sale_by_bill_route(bill_number: str):
    sale = sales_service.get_sale_by_bill_number(bill_number)
    return {"sale": sale.to_dict(), "items": [i.to_dict() for i in sale.items]}


@sales_bp.post("/bill/<bill_number>/whatsapp-sent")
def mark_whatsapp_sent_route(bill_number: str):
    sale = sales_service.mark_whatsapp_sent(bill_number)
    return {"success": True, "sale": sale.to_dict()}
