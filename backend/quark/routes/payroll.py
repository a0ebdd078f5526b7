# Overview: Flask API routes for payroll operations; parses input and returns JSON responses.

"""
Payroll Routes

SECURITY:
- Viewing periods, items and lock history requires VIEW_PAYROLL.
- Creating periods requires MANAGE_PAYROLL_PERIODS.
- Locking and unlocking require LOCK_PAYROLL (admin only by default).
- Saving, deleting and previewing items require SAVE_PAYROLL.

A save against a missing or locked period answers 400; lock/unlock of a
missing period answers 404.
"""

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_permission
from ..errors import INVALID_JSON_BODY, STORE_FAILURE_BODY, error_body
from ..services import payroll_service
from ..services.concurrency import ConcurrencyConflict
from ..services.payroll_calculator import compute_pay
from ..services.payroll_service import (
    PayrollError,
    PayrollItemNotFoundError,
    PeriodNotFoundError,
)
from ..validation import ValidationError


payroll_bp = Blueprint("payroll", __name__, url_prefix="/api/payroll")


# =============================================================================
# Periods
# =============================================================================

@payroll_bp.post("/period")
@require_auth
@require_permission("MANAGE_PAYROLL_PERIODS")
def create_period_route():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(INVALID_JSON_BODY), 400

    try:
        period = payroll_service.create_period(
            data.get("start_date"),
            data.get("end_date"),
            user_id=g.current_user.id,
        )
        return jsonify({"period": period.to_dict()}), 201
    except (ValidationError, PayrollError) as e:
        return jsonify(error_body(e)), 400
    except ConcurrencyConflict as e:
        return jsonify(error_body(e)), 409
    except SQLAlchemyError:
        current_app.logger.exception("Failed to create payroll period")
        return jsonify(STORE_FAILURE_BODY), 500


@payroll_bp.get("/periods")
@require_auth
@require_permission("VIEW_PAYROLL")
def list_periods_route():
    periods = payroll_service.list_periods()
    return jsonify({"periods": [p.to_dict() for p in periods]})


def _toggle_route(period_id: int, action):
    try:
        period = action(period_id, user_id=g.current_user.id)
    except PeriodNotFoundError as e:
        return jsonify(error_body(e)), 404
    except PayrollError as e:
        return jsonify(error_body(e)), 400
    except SQLAlchemyError:
        current_app.logger.exception("Failed to toggle lock on payroll period %s", period_id)
        return jsonify(STORE_FAILURE_BODY), 500

    current_app.logger.info(
        "Payroll period %s %s by user %s",
        period.period_no,
        "locked" if period.is_locked else "unlocked",
        g.current_user.id,
    )
    return jsonify({"period": period.to_dict()})


@payroll_bp.put("/lock/<int:period_id>")
@require_auth
@require_permission("LOCK_PAYROLL")
def lock_period_route(period_id: int):
    return _toggle_route(period_id, payroll_service.lock_period)


@payroll_bp.put("/unlock/<int:period_id>")
@require_auth
@require_permission("LOCK_PAYROLL")
def unlock_period_route(period_id: int):
    return _toggle_route(period_id, payroll_service.unlock_period)


@payroll_bp.get("/periods/<int:period_id>/lock-history")
@require_auth
@require_permission("VIEW_PAYROLL")
def lock_history_route(period_id: int):
    try:
        events = payroll_service.get_lock_history(period_id)
    except PeriodNotFoundError as e:
        return jsonify(error_body(e)), 404
    return jsonify({"period_id": period_id, "events": [e.to_dict() for e in events]})


# =============================================================================
# Items
# =============================================================================

@payroll_bp.post("/save")
@require_auth
@require_permission("SAVE_PAYROLL")
def save_item_route():
    """
    Compute and save one worker's pay.

    Body: period_id, user_id, pay_type ("daily" | "piece"), daily_rate,
    work_days, piece_count, extra_rate, ot_hours, bonus, deduction, note,
    optional item_id to update an existing item.
    """
    data = request.get_json(silent=True) or {}

    try:
        item = payroll_service.save_payroll_item(data, user_id=g.current_user.id)
        return jsonify({"item": item.to_dict()}), 200 if data.get("item_id") else 201
    except PayrollItemNotFoundError as e:
        return jsonify(error_body(e)), 404
    except (ValidationError, PayrollError) as e:
        return jsonify(error_body(e)), 400
    except ConcurrencyConflict as e:
        return jsonify(error_body(e)), 409
    except SQLAlchemyError:
        current_app.logger.exception("Failed to save payroll item")
        return jsonify(STORE_FAILURE_BODY), 500


@payroll_bp.get("/periods/<int:period_id>/items")
@require_auth
@require_permission("VIEW_PAYROLL")
def list_items_route(period_id: int):
    try:
        items = payroll_service.list_items(period_id)
    except PeriodNotFoundError as e:
        return jsonify(error_body(e)), 404
    return jsonify({"period_id": period_id, "items": [item.to_dict() for item in items]})


@payroll_bp.delete("/items/<int:item_id>")
@require_auth
@require_permission("SAVE_PAYROLL")
def delete_item_route(item_id: int):
    try:
        payroll_service.delete_payroll_item(item_id)
        return jsonify({"deleted": item_id})
    except PayrollItemNotFoundError as e:
        return jsonify(error_body(e)), 404
    except PayrollError as e:
        return jsonify(error_body(e)), 400
    except SQLAlchemyError:
        current_app.logger.exception("Failed to delete payroll item %s", item_id)
        return jsonify(STORE_FAILURE_BODY), 500


@payroll_bp.post("/preview")
@require_auth
@require_permission("SAVE_PAYROLL")
def preview_route():
    """Compute totals without touching the store."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(INVALID_JSON_BODY), 400

    try:
        result = compute_pay(data.get("pay_type"), data)
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    return jsonify(result.to_dict())
