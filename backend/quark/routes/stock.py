# Overview: Flask API routes for raw-material stock; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_permission
from ..errors import STORE_FAILURE_BODY, error_body
from ..services import stock_service
from ..services.stock_service import StockError, StockNotFoundError
from ..validation import ValidationError


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("")
@require_auth
@require_permission("VIEW_STOCK")
def list_stock_route():
    """Stock entries, newest first. ?in_stock=1 hides entries already taken out."""
    in_stock_only = request.args.get("in_stock", "").lower() in {"1", "true", "yes"}
    source_order_id = request.args.get("source_order_id", type=int)
    limit = request.args.get("limit", default=200, type=int)

    entries = stock_service.list_stock(
        in_stock_only=in_stock_only,
        source_order_id=source_order_id,
        limit=limit,
    )
    return jsonify({"stock": [entry.to_dict() for entry in entries]})


@stock_bp.post("")
@require_auth
@require_permission("MANAGE_STOCK")
def add_stock_route():
    data = request.get_json(silent=True) or {}

    try:
        entry = stock_service.add_stock_entry(data, user_id=g.current_user.id)
        return jsonify({"stock": entry.to_dict()}), 201
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    except SQLAlchemyError:
        current_app.logger.exception("Failed to add stock entry")
        return jsonify(STORE_FAILURE_BODY), 500


@stock_bp.put("/<int:entry_id>/take-out")
@require_auth
@require_permission("MANAGE_STOCK")
def take_out_route(entry_id: int):
    try:
        entry = stock_service.take_out_stock(entry_id)
        return jsonify({"stock": entry.to_dict()})
    except StockNotFoundError as e:
        return jsonify(error_body(e)), 404
    except StockError as e:
        return jsonify(error_body(e)), 400
    except SQLAlchemyError:
        current_app.logger.exception("Failed to take out stock entry %s", entry_id)
        return jsonify(STORE_FAILURE_BODY), 500
