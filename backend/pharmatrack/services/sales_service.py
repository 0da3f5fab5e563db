"""
Sales Service - one-shot sale transaction

WHY: A sale either happens completely or not at all. Stock decrements, the
sale header and every line item are written in a single transaction; any
failure rolls all of it back, so product quantities are exactly what they
were before the call.

Nothing here retries. A caller that gets PersistenceFailure may resubmit
the same cart because no part of the failed attempt was applied.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import PAYMENT_METHODS
from ..validation import MAX_INT, MAX_PRICE_CENTS, MAX_QUANTITY, ValidationError, coerce_int
from . import ledger_service, products_service, receipt_service
from .concurrency import begin_write
from .errors import (
    CartValidationError,
    PersistenceFailure,
    PriceMismatch,
    ProductNotFound,
    SaleError,
)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price_cents: int | None = None


def _coerce_field(field: str, value, *, minimum: int, maximum: int) -> int:
    try:
        number = coerce_int(field, value)
    except ValidationError as e:
        raise CartValidationError(str(e), field=field) from e
    if number < minimum:
        raise CartValidationError(f"{field} must be >= {minimum}", field=field)
    if number > maximum:
        raise CartValidationError(f"{field} cannot exceed {maximum}", field=field)
    return number


def parse_cart(items) -> list[CartLine]:
    """Validate raw cart lines. Raises CartValidationError naming the offending field."""
    if not isinstance(items, list) or not items:
        raise CartValidationError("items must be a non-empty list", field="items")

    cart = []
    for i, raw in enumerate(items):
        prefix = f"items[{i}]"
        if not isinstance(raw, dict):
            raise CartValidationError(f"{prefix} must be an object", field=prefix)

        if raw.get("product_id") is None:
            raise CartValidationError(f"{prefix}.product_id is required", field=f"{prefix}.product_id")
        product_id = _coerce_field(f"{prefix}.product_id", raw["product_id"], minimum=1, maximum=MAX_INT)

        if raw.get("quantity") is None:
            raise CartValidationError(f"{prefix}.quantity is required", field=f"{prefix}.quantity")
        quantity = _coerce_field(f"{prefix}.quantity", raw["quantity"], minimum=1, maximum=MAX_QUANTITY)

        unit_price_cents = None
        if raw.get("unit_price_cents") is not None:
            unit_price_cents = _coerce_field(
                f"{prefix}.unit_price_cents",
                raw["unit_price_cents"],
                minimum=0,
                maximum=MAX_PRICE_CENTS,
            )

        cart.append(CartLine(product_id, quantity, unit_price_cents))
    return cart


def parse_payment_method(payment_method) -> str:
    if not isinstance(payment_method, str) or payment_method.strip().lower() not in PAYMENT_METHODS:
        raise CartValidationError(
            f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}",
            field="payment_method",
        )
    return payment_method.strip().lower()


def _resolve_prices(cart: list[CartLine], allow_override: bool) -> list[tuple[CartLine, int]]:
    """Look up every product and settle the unit price charged for each line."""
    priced = []
    for line in cart:
        product = products_service.get_product(line.product_id)
        if not product:
            raise ProductNotFound(line.product_id)

        unit_price = line.unit_price_cents
        if unit_price is None:
            unit_price = product.price_cents
        elif unit_price != product.price_cents and not allow_override:
            raise PriceMismatch(line.product_id, unit_price, product.price_cents)

        priced.append((line, unit_price))
    return priced


def _write_sale(user_id: int, cart: list[CartLine], payment_method: str) -> int:
    config = current_app.config
    tax_rate_bps = config["SALES_TAX_RATE_BPS"]
    priced = _resolve_prices(cart, config["ALLOW_PRICE_OVERRIDE"])

    totals = receipt_service.compute_totals(
        [(line.quantity, unit_price) for line, unit_price in priced],
        tax_rate_bps,
    )
    if totals["total_cents"] > MAX_INT:
        raise CartValidationError(f"Sale total cannot exceed {MAX_INT} cents", field="items")

    for line, _ in priced:
        products_service.decrement_stock(line.product_id, line.quantity)

    sale = ledger_service.create_sale(
        user_id=user_id,
        payment_method=payment_method,
        total_cents=totals["total_cents"],
        tax_rate_bps=tax_rate_bps,
    )
    for line, unit_price in priced:
        ledger_service.add_line_item(
            sale_id=sale.id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price_cents=unit_price,
        )
    return sale.id


def process_sale(*, user_id: int, items, payment_method) -> dict:
    """
    Validate a cart, decrement stock, write the sale, return its receipt.

    Raises:
        CartValidationError: malformed input, nothing touched
        ProductNotFound / InsufficientStock / PriceMismatch: rolled back
        PersistenceFailure: database error, rolled back
    """
    cart = parse_cart(items)
    method = parse_payment_method(payment_method)

    try:
        begin_write()
        sale_id = _write_sale(user_id, cart, method)
        db.session.commit()
    except SaleError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Sale could not be saved; nothing was applied") from exc
    except BaseException:
        db.session.rollback()
        raise

    return receipt_service.build_receipt(sale_id)
