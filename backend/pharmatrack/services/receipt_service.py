# Overview: Receipt projection; read-side view of a committed sale.

from __future__ import annotations

from ..models import Sale, SaleItem
from . import ledger_service


def compute_tax_cents(subtotal_cents: int, tax_rate_bps: int) -> int:
    """Tax on a subtotal, rounded half up to the cent."""
    return (subtotal_cents * tax_rate_bps + 5_000) // 10_000


def compute_totals(lines: list[tuple[int, int]], tax_rate_bps: int) -> dict:
    """
    Totals for (quantity, unit_price_cents) pairs.

    Used both when a sale is written and when its receipt is rendered, so
    the stored total and the recomputed one cannot drift apart.
    """
    subtotal = sum(qty * unit_price for qty, unit_price in lines)
    tax = compute_tax_cents(subtotal, tax_rate_bps)
    return {
        "subtotal_cents": subtotal,
        "tax_cents": tax,
        "total_cents": subtotal + tax,
    }


def project_receipt(sale: Sale, lines: list[SaleItem]) -> dict:
    """
    Shape a persisted sale and its lines for presentation. Pure.

    Tax is recomputed at the rate stored on the sale, so a later change to
    SALES_TAX_RATE_BPS leaves past receipts as they were.
    """
    tax_rate_bps = sale.tax_rate_bps
    items = [
        {
            "product_id": line.product_id,
            "name": line.product.name if line.product else None,
            "quantity": line.quantity,
            "unit_price_cents": line.unit_price_cents,
            "line_total_cents": line.line_total_cents,
        }
        for line in lines
    ]
    totals = compute_totals([(line.quantity, line.unit_price_cents) for line in lines], tax_rate_bps)

    receipt = sale.to_dict()
    receipt.update(items=items, **totals)
    # The header keeps what was charged; totals above are recomputed
    receipt["charged_total_cents"] = sale.total_cents
    return receipt


def build_receipt(sale_id: int) -> dict | None:
    sale = ledger_service.get_sale(sale_id)
    if not sale:
        return None
    lines = ledger_service.get_line_items(sale_id)
    return project_receipt(sale, lines)
