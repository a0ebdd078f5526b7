# Overview: Flask API routes for production orders; parses input and returns JSON responses.

"""
Order Routes

SECURITY:
- Listing and viewing require VIEW_ORDERS.
- Creation requires CREATE_ORDER.
- Production status changes require UPDATE_PRODUCTION_STATUS.
"""

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_permission
from ..errors import INVALID_JSON_BODY, STORE_FAILURE_BODY, error_body
from ..services import audit_service, order_service, production_service
from ..services.concurrency import ConcurrencyConflict
from ..services.production_service import InvalidTransitionError, OrderNotFoundError
from ..validation import ValidationError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_permission("CREATE_ORDER")
def create_order_route():
    """Allocate an order number and create the order in 'intake'."""
    data = request.get_json(silent=True) or {}

    try:
        order = order_service.create_order(data, user_id=g.current_user.id)
        return jsonify({"order": order.to_dict()}), 201
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    except ConcurrencyConflict as e:
        return jsonify(error_body(e)), 409
    except SQLAlchemyError:
        current_app.logger.exception("Failed to create order")
        return jsonify(STORE_FAILURE_BODY), 500


@orders_bp.get("")
@require_auth
@require_permission("VIEW_ORDERS")
def list_orders_route():
    production_status = request.args.get("production_status")
    limit = request.args.get("limit", default=200, type=int)
    offset = request.args.get("offset", default=0, type=int)

    try:
        orders, total = order_service.list_orders(
            production_status=production_status,
            limit=limit,
            offset=offset,
        )
    except InvalidTransitionError as e:
        return jsonify(error_body(e)), 400

    return jsonify({
        "orders": [o.to_dict() for o in orders],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_ORDERS")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
    except OrderNotFoundError as e:
        return jsonify(error_body(e)), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.get("/<int:order_id>/status-log")
@require_auth
@require_permission("VIEW_ORDERS")
def status_log_route(order_id: int):
    try:
        order_service.get_order(order_id)
    except OrderNotFoundError as e:
        return jsonify(error_body(e)), 404

    entries = audit_service.list_status_history(order_id)
    return jsonify({"order_id": order_id, "entries": [entry.to_dict() for entry in entries]})


@orders_bp.put("/<int:order_id>/production-status")
@require_auth
@require_permission("UPDATE_PRODUCTION_STATUS")
def update_production_status_route(order_id: int):
    """
    Move an order to its next stage, or cancel it.

    Body: {"production_status": "<status>"}
    Cancellation also returns the order's materials to stock.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(INVALID_JSON_BODY), 400
    requested = data.get("production_status")

    if not requested:
        return jsonify({"error": "production_status is required", "kind": "validation_error"}), 400

    try:
        order = production_service.change_production_status(
            order_id,
            requested,
            user_id=g.current_user.id,
        )
        return jsonify({"order": order.to_dict()})
    except OrderNotFoundError as e:
        return jsonify(error_body(e)), 404
    except (InvalidTransitionError, ValidationError) as e:
        return jsonify(error_body(e)), 400
    except ConcurrencyConflict as e:
        return jsonify(error_body(e)), 409
    except SQLAlchemyError:
        current_app.logger.exception("Failed to update production status for order %s", order_id)
        return jsonify(STORE_FAILURE_BODY), 500
