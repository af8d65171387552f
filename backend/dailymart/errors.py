# Overview: Error taxonomy shared by services and routes.

"""
Every failure a service can report to its caller is a PosError subclass.

Each error carries:
- a human-readable message (str(exc))
- kind: a stable machine-readable name for the UI
- details: identifiers and quantities needed to render a precise message
- status_code: the HTTP status the JSON API answers with
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for errors surfaced to callers."""

    kind = "PosError"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind, "details": self.details}


class NotFoundError(PosError):
    """Product, sale or barcode lookup miss."""

    kind = "NotFound"
    status_code = 404


class ProductNotFoundError(NotFoundError):
    """Raised when a product id/barcode does not resolve to a sellable product."""


class ValidationError(PosError, ValueError):
    """400-level input problem."""

    kind = "ValidationError"
    status_code = 400


class InsufficientStockError(PosError):
    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, *, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, requested: {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class ProductInUseError(PosError):
    """Delete blocked because historical sales reference the product."""

    kind = "ProductInUse"
    status_code = 409

    def __init__(self, *, product_id: int, count: int):
        super().__init__(
            f"Product is referenced by {count} sale(s); deactivate it instead",
            details={"product_id": product_id, "count": count},
        )
        self.product_id = product_id
        self.count = count


class EmptyCartError(PosError):
    kind = "EmptyCart"
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class StoreError(PosError):
    """Underlying persistence failure (locked database, unclassified constraint violation)."""

    kind = "StoreError"
    status_code = 503
