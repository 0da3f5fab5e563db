# Overview: Error taxonomy for the sale transaction flow.

"""
Sale errors are reported to callers as a discriminated result:

    {"error": <message>, "code": <CODE>, "details": {...}}

Every error is raised before commit, so the whole sale has been rolled back
by the time a caller sees one.
"""


class SaleError(Exception):
    """Raised for sale operation errors."""
    code = "SALE_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class CartValidationError(SaleError):
    """Malformed cart, rejected before any write."""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str):
        super().__init__(message, details={"field": field})
        self.field = field


class ProductNotFound(SaleError):
    code = "PRODUCT_NOT_FOUND"
    http_status = 404

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})
        self.product_id = product_id


class InsufficientStock(SaleError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Not enough stock for product {product_id}. Available: {available}, Requested: {requested}",
            details={"product_id": product_id, "available": available, "requested": requested},
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class PriceMismatch(SaleError):
    code = "PRICE_MISMATCH"
    http_status = 409

    def __init__(self, product_id: int, submitted_cents: int, current_cents: int):
        super().__init__(
            f"Submitted price for product {product_id} does not match the current price",
            details={
                "product_id": product_id,
                "submitted_price_cents": submitted_cents,
                "current_price_cents": current_cents,
            },
        )
        self.product_id = product_id
        self.submitted_cents = submitted_cents
        self.current_cents = current_cents


class PersistenceFailure(SaleError):
    """Storage unavailable or transaction conflict. Nothing was applied; safe to resubmit."""
    code = "PERSISTENCE_FAILURE"
    http_status = 503
