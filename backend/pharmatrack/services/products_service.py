# backend/pharmatrack/services/products_service.py
"""
Product Store

Stock only ever moves down through decrement_stock, a single conditional
UPDATE whose affected-row count decides whether the sale line fits. The
admin write path validates quantity >= 0 before it reaches the database.
"""
from __future__ import annotations

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, SaleItem, Supplier
from ..validation import MAX_INT, ConflictError, ValidationError
from .concurrency import begin_write, lock_for_update, run_with_retry
from .errors import InsufficientStock, ProductNotFound

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "price_cents", "quantity",
    "reorder_level", "supplier_id", "expiry_date",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_supplier(patch: dict) -> None:
    supplier_id = patch.get("supplier_id")
    if supplier_id is not None and db.session.get(Supplier, supplier_id) is None:
        raise ValidationError("Invalid supplier_id - supplier does not exist")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_product(product_id: int) -> Product | None:
    if not 0 < product_id <= MAX_INT:
        return None
    return db.session.get(Product, product_id)


def decrement_stock(product_id: int, amount: int) -> None:
    """
    Reduce on-hand quantity by amount, only if at least amount is on hand.

    Runs inside the caller's transaction and never commits. The UPDATE takes
    the row lock, so concurrent sales of the same product serialize here and
    the later one sees the reduced quantity.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.quantity >= amount)
        .values(
            quantity=Product.quantity - amount,
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if result.rowcount != 1:
        available = (
            db.session.query(Product.quantity)
            .filter(Product.id == product_id)
            .scalar()
        )
        if available is None:
            raise ProductNotFound(product_id)
        raise InsufficientStock(product_id, available, amount)

    product = db.session.identity_map.get(db.session.identity_key(Product, product_id))
    if product is not None:
        db.session.expire(product, ["quantity", "version_id"])


def list_products(
    page: int | None = None,
    per_page: int | None = None,
    search: str | None = None,
) -> dict:
    """
    Product listing with optional pagination and name search.

    Ordered and paginated on the primary key; the supplier is a many-to-one
    join, so every product appears exactly once.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product).order_by(Product.id.asc())

    if search:
        term = search.strip()
        filters = [Product.name.ilike(f"%{_escape_like(term)}%", escape="\\")]
        if term.isdecimal() and int(term) <= MAX_INT:
            filters.append(Product.id == int(term))
        base_query = base_query.filter(or_(*filters))

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    # Pagination logic
    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_low_stock() -> list[Product]:
    """Products at or under their reorder level, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(Product.quantity <= Product.reorder_level)
        .order_by(Product.quantity.asc(), Product.id.asc())
        .all()
    )


def create_product(*, patch: dict) -> dict:
    """Create product using a validated patch dict."""
    _require_supplier(patch)

    p = Product()
    apply_product_patch(p, patch)
    if p.quantity is None:
        p.quantity = 0
    if p.reorder_level is None:
        p.reorder_level = 0

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update product using a validated patch dict.

    The row is locked for the read-modify-write; a concurrent sale bumping
    version_id makes the flush raise StaleDataError, which is retried.
    """
    if not 0 < product_id <= MAX_INT:
        return None

    def _op():
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not p:
            return None

        _require_supplier(patch)
        apply_product_patch(p, patch)
        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product that has never been sold.

    Raises ConflictError if any sale item references it; past receipts
    must stay resolvable. The write lock is taken before the reference
    check so no sale can commit a line for this product in between.
    """
    if not 0 < product_id <= MAX_INT:
        return False

    try:
        begin_write()
        p = db.session.get(Product, product_id)
        if not p:
            db.session.rollback()
            return False

        referenced = db.session.query(SaleItem.id).filter_by(product_id=product_id).first()
        if referenced:
            raise ConflictError("Product has recorded sales and cannot be deleted")

        db.session.delete(p)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Product has recorded sales and cannot be deleted") from exc
    except BaseException:
        db.session.rollback()
        raise
    return True
