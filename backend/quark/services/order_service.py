# Overview: Service-layer operations for production orders; numbering and persistence.

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Order
from ..models.orders import INTAKE
from ..time_utils import today
from ..validation import ModelValidationPolicy, enforce_rules_material, validate_payload
from . import audit_service
from .concurrency import run_with_retry
from .document_service import (
    ORDER,
    flush_new_document,
    format_order_number,
    next_sequence,
    yearly_period_key,
)
from .production_service import OrderNotFoundError, validate_status


ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "order_date",
        "car_model",
        "car_year",
        "material_type",
        "material_color",
        "quantity",
        "channel",
        "customer",
        "payment_status",
        "set_type",
        "note",
    },
    required_on_create={"car_model", "quantity"},
)


def create_order(payload: dict, *, user_id: int) -> Order:
    """
    Allocate an order number and persist the order in 'intake'.

    Allocation, insert and the initial status log entry share one
    transaction; a failed insert releases the number with it.
    """
    patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=False)
    enforce_rules_material(patch)

    order_date: date = patch.pop("order_date", None) or today()
    prefix = current_app.config["ORDER_NUMBER_PREFIX"]

    def _op() -> Order:
        number = next_sequence(ORDER, yearly_period_key(order_date))
        order = Order(
            order_no=format_order_number(prefix, order_date.year, number),
            order_date=order_date,
            production_status=INTAKE,
            created_by_user_id=user_id,
            **patch,
        )
        flush_new_document(order, "order_no")
        audit_service.record_status_change(order.id, INTAKE, user_id)
        db.session.commit()
        return order

    return run_with_retry(_op, attempts=5)


def get_order(order_id: int) -> Order:
    order = db.session.query(Order).filter_by(id=order_id).first()
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    return order


def list_orders(*, production_status: str | None = None, limit: int = 200, offset: int = 0) -> tuple[list[Order], int]:
    query = db.session.query(Order)
    if production_status:
        validate_status(production_status)
        query = query.filter_by(production_status=production_status)

    total = query.count()

    if offset < 0:
        offset = 0
    limit = max(1, min(limit, 500))

    orders = query.order_by(Order.id.desc()).offset(offset).limit(limit).all()
    return orders, total
