# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pharmatrack/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations are open to admin and clerk (the POS looks products up)
- Write operations are admin only
"""
from flask import Blueprint, request
from ..services.products_service import (
    list_products as list_products_service,
    get_product,
)
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_role

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "price_cents", "quantity",
        "reorder_level", "supplier_id", "expiry_date",
    },
    required_on_create={"name", "price_cents", "quantity"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_role("admin", "clerk")
def list_products():
    """
    List products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    - search: str (optional) - name substring or exact id
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    search = request.args.get("search")

    return list_products_service(page=page, per_page=per_page, search=search)


@products_bp.get("/<int:product_id>")
@require_auth
@require_role("admin", "clerk")
def get_product_route(product_id: int):
    product = get_product(product_id)
    if not product:
        return {"error": "Product not found"}, 404
    return product.to_dict(), 200


@products_bp.post("")
@require_auth
@require_role("admin")
def create_product_route():
    """Create a new product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    from ..services.products_service import create_product

    try:
        created = create_product(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    """Delete a product. Refused with 409 once the product has been sold."""
    from ..services.products_service import delete_product

    try:
        deleted = delete_product(product_id=product_id)
    except ConflictError as e:
        return {"error": str(e)}, 409

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("admin")
def update_product_route(product_id: int):
    """Update a product (partial)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    from ..services.products_service import update_product

    try:
        updated = update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200
