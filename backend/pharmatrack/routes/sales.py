# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pharmatrack/routes/sales.py
"""Sales API routes with role enforcement"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ledger_service, receipt_service, sales_service
from ..services.errors import SaleError, InsufficientStock, PriceMismatch, PersistenceFailure
from ..decorators import require_auth, require_role


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_role("admin", "clerk")
def create_sale_route():
    """
    Ring up a sale: decrement stock, write the ledger entry, return the receipt.

    Body: {"items": [{"product_id", "quantity", "unit_price_cents"?}], "payment_method"}
    """
    data = request.get_json(silent=True) or {}

    try:
        receipt = sales_service.process_sale(
            user_id=g.current_user.id,
            items=data.get("items"),
            payment_method=data.get("payment_method"),
        )
    except (InsufficientStock, PriceMismatch) as e:
        current_app.logger.warning("Sale rejected for user %s: %s", g.current_user.id, e)
        return jsonify(e.to_dict()), e.http_status
    except PersistenceFailure as e:
        current_app.logger.exception("Sale could not be persisted")
        return jsonify(e.to_dict()), e.http_status
    except SaleError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale %s committed by user %s: %s cents via %s",
        receipt["id"], g.current_user.id, receipt["total_cents"], receipt["payment_method"],
    )
    return jsonify({"sale": receipt, "message": "Sale created successfully"}), 201


@sales_bp.get("")
@require_auth
@require_role("admin")
def list_sales_route():
    """
    Paginated sales ledger, newest first.

    Query params: page (default 1), per_page (default 10, max 100)
    """
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", type=int)
    return jsonify(ledger_service.list_sales(page=page, per_page=per_page)), 200


@sales_bp.get("/mine")
@require_auth
@require_role("admin", "clerk")
def list_my_sales_route():
    """The caller's own sales (clerk transaction history)."""
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", type=int)
    result = ledger_service.list_sales(page=page, per_page=per_page, user_id=g.current_user.id)
    return jsonify(result), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_role("admin", "clerk")
def get_sale_route(sale_id: int):
    """Receipt view of a committed sale."""
    receipt = receipt_service.build_receipt(sale_id)
    if not receipt:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": receipt}), 200
