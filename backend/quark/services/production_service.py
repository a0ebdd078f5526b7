# Overview: Service-layer operations for production status; state machine plus the transition unit of work.

"""
Production Status Service

================================================================================
STATE MACHINE:
    intake -> cut -> assembled -> sewn -> QC -> shipped
    intake | cut | assembled | sewn | QC -> cancelled

RULES:
1. Only the immediate successor is reachable (no skips, no repeats, no going back)
2. cancelled is reachable from every non-terminal stage
3. shipped and cancelled are terminal
================================================================================

A transition is one transaction: status update, audit entry and (for
cancellation) the stock reconciliation entry land together or not at all.
"""

from __future__ import annotations

from ..errors import QuarkError
from ..extensions import db
from ..models import Order
from ..models.orders import (
    CANCELLED,
    PRODUCTION_STAGES,
    PRODUCTION_STATUSES,
    TERMINAL_STATUSES,
)
from . import audit_service, stock_service
from .concurrency import lock_for_update, run_with_retry


class InvalidTransitionError(QuarkError, ValueError):
    """Requested production status is not reachable from the current one."""
    kind = "invalid_transition"

    def __init__(self, from_status: str | None, to_status: str | None, message: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message or f"Cannot move production status from '{from_status}' to '{to_status}'"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["from_status"] = self.from_status
        data["to_status"] = self.to_status
        return data


class OrderNotFoundError(QuarkError, LookupError):
    kind = "order_not_found"


def validate_status(status: str | None, from_status: str | None = None) -> None:
    if status not in PRODUCTION_STATUSES:
        raise InvalidTransitionError(
            from_status,
            status,
            f"Invalid production status '{status}'. Must be one of: {', '.join(PRODUCTION_STATUSES)}",
        )


def next_stage(status: str) -> str | None:
    """Immediate successor in the stage list, None for terminal states."""
    if status in TERMINAL_STATUSES or status not in PRODUCTION_STAGES:
        return None
    return PRODUCTION_STAGES[PRODUCTION_STAGES.index(status) + 1]


def can_transition(from_status: str, to_status: str) -> bool:
    if from_status not in PRODUCTION_STATUSES or to_status not in PRODUCTION_STATUSES:
        return False
    if from_status in TERMINAL_STATUSES:
        return False
    if to_status == CANCELLED:
        return True
    return next_stage(from_status) == to_status


def validate_transition(from_status: str, to_status: str) -> None:
    """Raise InvalidTransitionError unless from_status -> to_status is allowed."""
    validate_status(to_status, from_status)
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def change_production_status(order_id: int, requested_status: str, *, user_id: int) -> Order:
    """
    Move an order to requested_status.

    The order row is read FOR UPDATE and carries version_id; a concurrent
    transition makes the flush raise StaleDataError and the retry re-reads
    the new status, where validation rejects a duplicate move.
    """
    def _op() -> Order:
        order = lock_for_update(
            db.session.query(Order).filter_by(id=order_id).populate_existing()
        ).first()
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")

        validate_transition(order.production_status, requested_status)

        order.production_status = requested_status
        db.session.flush()

        audit_service.record_status_change(order.id, requested_status, user_id)

        if requested_status == CANCELLED:
            stock_service.reconcile_cancelled_order(order, user_id=user_id)

        db.session.commit()
        return order

    return run_with_retry(_op)
