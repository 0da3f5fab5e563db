# Overview: Sale Ledger; append-only sale headers and their line items.

from __future__ import annotations

from ..extensions import db
from ..models import Sale, SaleItem
from ..validation import MAX_INT


def create_sale(*, user_id: int, payment_method: str, total_cents: int, tax_rate_bps: int) -> Sale:
    """
    Append a sale header inside the current transaction.

    Flushes to obtain the generated id; the caller owns the commit.
    """
    sale = Sale(
        user_id=user_id,
        payment_method=payment_method,
        total_cents=total_cents,
        tax_rate_bps=tax_rate_bps,
    )
    db.session.add(sale)
    db.session.flush()
    return sale


def add_line_item(*, sale_id: int, product_id: int, quantity: int, unit_price_cents: int) -> SaleItem:
    item = SaleItem(
        sale_id=sale_id,
        product_id=product_id,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
    )
    db.session.add(item)
    db.session.flush()
    return item


def get_sale(sale_id: int) -> Sale | None:
    if not 0 < sale_id <= MAX_INT:
        return None
    return db.session.get(Sale, sale_id)


def get_line_items(sale_id: int) -> list[SaleItem]:
    """Line items in insertion order."""
    return (
        db.session.query(SaleItem)
        .filter_by(sale_id=sale_id)
        .order_by(SaleItem.id.asc())
        .all()
    )


def list_sales(
    page: int = 1,
    per_page: int | None = None,
    user_id: int | None = None,
) -> dict:
    """
    Newest-first ledger listing, optionally scoped to one clerk.

    Returns:
        Dict with 'items', 'count', and pagination metadata.
    """
    base_query = db.session.query(Sale)
    if user_id is not None:
        base_query = base_query.filter(Sale.user_id == user_id)
    base_query = base_query.order_by(Sale.created_at.desc(), Sale.id.desc())

    per_page = min(per_page or 10, 100)
    page = max(page or 1, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    sales = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
