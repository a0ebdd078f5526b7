# Overview: Service-layer operations for the order status audit trail.

"""
Order Status Audit Log

- Append-only: entries are never updated or deleted.
- Entries are written inside the same DB transaction as the status change
  they record (flush only, the caller commits), so an order never shows a
  status without its log entry or the reverse.
"""

from __future__ import annotations

from ..extensions import db
from ..models import OrderStatusLog
from ..validation import ValidationError
from ..time_utils import utcnow


def record_status_change(order_id: int, status: str, user_id: int) -> OrderStatusLog:
    """Append one status entry to the current transaction."""
    if not user_id:
        raise ValidationError("user_id is required for status log entries")

    entry = OrderStatusLog(
        order_id=order_id,
        status=status,
        user_id=user_id,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def list_status_history(order_id: int) -> list[OrderStatusLog]:
    """Entries for an order, oldest first."""
    return (
        db.session.query(OrderStatusLog)
        .filter_by(order_id=order_id)
        .order_by(OrderStatusLog.id.asc())
        .all()
    )
