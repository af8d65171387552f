# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# dailymart/routes/products.py
"""
Product catalogue routes.

Money fields are integer cents. Deleting a product with sale history is
refused with 409 and the number of referencing sales, so the caller can
offer to deactivate it instead (PUT {"is_active": false}).
"""
from flask import Blueprint, request

from ..services import products_service, sales_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() == "true"


@products_bp.get("")
def list_products():
    """
    List products (active only unless include_inactive=true).

    Query params:
    - q: str (optional) - substring search over barcode, name, category
    - include_inactive: bool (optional)
    """
    term = request.args.get("q")
    include_inactive = _flag("include_inactive")

    if term:
        products = products_service.search_products(term, include_inactive=include_inactive)
    else:
        products = products_service.list_products(include_inactive=include_inactive)

    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    return products_service.get_product(product_id).to_dict()


@products_bp.get("/barcode/<barcode>")
def get_product_by_barcode(barcode: str):
    """Sellable product for a scanned barcode; 404 when missing or discontinued."""
    product = products_service.get_product_by_barcode(barcode)
    if product is None:
        return {"error": "Product not found", "kind": "NotFound", "details": {"barcode": barcode}}, 404
    return product.to_dict()


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    product = products_service.add_product(payload)
    return {"id": product.id, "product": product.to_dict()}, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    product = products_service.update_product(product_id, payload)
    return {"success": True, "product": product.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    sales_service.delete_product(product_id)
    return {"success": True}, 200
