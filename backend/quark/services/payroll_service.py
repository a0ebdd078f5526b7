# Overview: Service-layer operations for payroll; periods, lock/unlock and item writes.

"""
Payroll Service

================================================================================
PERIOD LIFECYCLE:
    OPEN <-> LOCKED   (every toggle stamped on the period and appended to
                       payroll_period_lock_events)

RULES:
1. Periods never overlap (inclusive ranges)
2. A locked period rejects item inserts, updates and deletes
3. The lock check and the item write are one transaction: the check is a
   conditional UPDATE on the period row, so a concurrent lock either
   commits first (the write is rejected) or waits for the write to commit
================================================================================
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import update

from ..errors import QuarkError
from ..extensions import db
from ..models import PayrollItem, PayrollPeriod, PayrollPeriodLockEvent, User
from ..time_utils import utcnow
from ..validation import ValidationError, coerce_date, coerce_int
from .concurrency import run_with_retry
from .document_service import (
    PAYROLL_PERIOD,
    PERIOD_KEY_ALL,
    flush_new_document,
    format_period_number,
    next_sequence,
)
from .payroll_calculator import PAY_TYPES, compute_pay, parse_pay_inputs


LOCK = "LOCK"
UNLOCK = "UNLOCK"


class PayrollError(QuarkError, ValueError):
    kind = "payroll_error"


class PeriodNotFoundError(PayrollError, LookupError):
    kind = "period_not_found"


class PeriodLockedError(PayrollError):
    kind = "period_locked"


class OverlappingPeriodError(PayrollError):
    kind = "overlapping_period"


class PeriodStateError(PayrollError):
    """Lock requested on a locked period, or unlock on an open one."""
    kind = "period_state"


class PayrollItemNotFoundError(PayrollError, LookupError):
    kind = "payroll_item_not_found"


# =============================================================================
# Periods
# =============================================================================

def _get_period(period_id: int) -> PayrollPeriod:
    period = db.session.query(PayrollPeriod).filter_by(id=period_id).first()
    if period is None:
        raise PeriodNotFoundError(f"Payroll period {period_id} not found")
    return period


def find_overlapping_period(start_date: date, end_date: date) -> PayrollPeriod | None:
    """Any period whose inclusive range intersects [start_date, end_date]."""
    return (
        db.session.query(PayrollPeriod)
        .filter(PayrollPeriod.start_date <= end_date, PayrollPeriod.end_date >= start_date)
        .order_by(PayrollPeriod.start_date.asc())
        .first()
    )


def create_period(start_date, end_date, *, user_id: int | None = None) -> PayrollPeriod:
    """
    Create an open period.

    The PAYROLL_PERIOD counter update takes the write lock first, so two
    creators of overlapping ranges run their overlap checks one after the
    other.
    """
    if start_date in (None, "") or end_date in (None, ""):
        raise ValidationError("start_date and end_date are required")
    start = coerce_date(start_date, "start_date")
    end = coerce_date(end_date, "end_date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date")

    def _op() -> PayrollPeriod:
        number = next_sequence(PAYROLL_PERIOD, PERIOD_KEY_ALL)

        existing = find_overlapping_period(start, end)
        if existing is not None:
            raise OverlappingPeriodError(
                f"Period overlaps {existing.period_no} "
                f"({existing.start_date.isoformat()} to {existing.end_date.isoformat()})"
            )

        period = PayrollPeriod(
            period_no=format_period_number(number),
            start_date=start,
            end_date=end,
            is_locked=False,
            revision=0,
            created_by_user_id=user_id,
        )
        flush_new_document(period, "period_no")
        db.session.commit()
        return period

    return run_with_retry(_op, attempts=5)


def list_periods() -> list[PayrollPeriod]:
    return db.session.query(PayrollPeriod).order_by(PayrollPeriod.start_date.desc()).all()


def assert_period_open(period_id: int) -> None:
    """
    Claim an open period for the current transaction.

    Bumps revision only where is_locked is false; zero matched rows means
    the period is missing or locked. Does not commit.
    """
    stmt = (
        update(PayrollPeriod)
        .where(PayrollPeriod.id == period_id, PayrollPeriod.is_locked.is_(False))
        .values(revision=PayrollPeriod.revision + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount:
        return

    exists = db.session.query(PayrollPeriod.id).filter_by(id=period_id).first()
    if exists is None:
        raise PeriodNotFoundError(f"Payroll period {period_id} not found")
    raise PeriodLockedError(f"Payroll period {period_id} is locked")


def _toggle_lock(period_id: int, *, user_id: int, action: str) -> PayrollPeriod:
    """
    Flip is_locked with a conditional UPDATE so two concurrent toggles in
    the same direction cannot both succeed.
    """
    locking = action == LOCK

    def _op() -> PayrollPeriod:
        now = utcnow()
        if locking:
            values = {"is_locked": True, "locked_at": now, "locked_by_user_id": user_id}
        else:
            values = {"is_locked": False, "unlocked_at": now, "unlocked_by_user_id": user_id}

        stmt = (
            update(PayrollPeriod)
            .where(PayrollPeriod.id == period_id, PayrollPeriod.is_locked.is_(not locking))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if not result.rowcount:
            period = _get_period(period_id)
            state = "already locked" if locking else "not locked"
            raise PeriodStateError(f"Payroll period {period.period_no} is {state}")

        db.session.add(PayrollPeriodLockEvent(
            period_id=period_id,
            action=action,
            user_id=user_id,
            occurred_at=now,
        ))
        db.session.commit()

        return (
            db.session.query(PayrollPeriod)
            .filter_by(id=period_id)
            .populate_existing()
            .one()
        )

    return run_with_retry(_op)


def lock_period(period_id: int, *, user_id: int) -> PayrollPeriod:
    return _toggle_lock(period_id, user_id=user_id, action=LOCK)


def unlock_period(period_id: int, *, user_id: int) -> PayrollPeriod:
    return _toggle_lock(period_id, user_id=user_id, action=UNLOCK)


def get_lock_history(period_id: int) -> list[PayrollPeriodLockEvent]:
    _get_period(period_id)
    return (
        db.session.query(PayrollPeriodLockEvent)
        .filter_by(period_id=period_id)
        .order_by(PayrollPeriodLockEvent.id.asc())
        .all()
    )


# =============================================================================
# Items
# =============================================================================

def save_payroll_item(payload: dict, *, user_id: int | None = None) -> PayrollItem:
    """
    Compute and persist one worker's pay in an open period.

    payload: period_id, user_id (the worker), pay_type, the numeric inputs,
    optional note and optional item_id (update instead of insert).
    Derived totals are always recomputed here.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    for field in ("period_id", "user_id", "pay_type"):
        if payload.get(field) in (None, ""):
            raise ValidationError(f"{field} is required")

    period_id = coerce_int(payload["period_id"], "period_id")
    worker_id = coerce_int(payload["user_id"], "user_id")
    item_id = payload.get("item_id")
    if item_id is not None:
        item_id = coerce_int(item_id, "item_id")

    pay_type = str(payload["pay_type"]).strip()
    if pay_type not in PAY_TYPES:
        raise ValidationError(f"pay_type must be one of: {', '.join(PAY_TYPES)}")

    inputs = parse_pay_inputs(payload)
    result = compute_pay(pay_type, inputs)

    note = payload.get("note")
    note = str(note).strip() if note is not None else None

    def _op() -> PayrollItem:
        if db.session.query(User.id).filter_by(id=worker_id).first() is None:
            raise ValidationError(f"User {worker_id} not found")

        assert_period_open(period_id)

        if item_id is not None:
            item = db.session.query(PayrollItem).filter_by(id=item_id).first()
            if item is None:
                raise PayrollItemNotFoundError(f"Payroll item {item_id} not found")
            if item.period_id != period_id:
                raise ValidationError(f"Payroll item {item_id} does not belong to period {period_id}")
            item.updated_at = utcnow()
        else:
            item = PayrollItem(period_id=period_id, created_by_user_id=user_id)
            db.session.add(item)

        item.user_id = worker_id
        item.pay_type = pay_type
        item.daily_rate = inputs.daily_rate
        item.work_days = inputs.work_days
        item.piece_count = inputs.piece_count
        item.extra_rate = inputs.extra_rate
        item.ot_hours = inputs.ot_hours
        item.bonus = inputs.bonus
        item.deduction = inputs.deduction
        item.piece_total = result.wage_total
        item.ot_total = result.ot_total
        item.total = result.grand_total
        item.note = note

        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_payroll_item(item_id: int) -> None:
    def _op() -> None:
        item = db.session.query(PayrollItem).filter_by(id=item_id).first()
        if item is None:
            raise PayrollItemNotFoundError(f"Payroll item {item_id} not found")

        assert_period_open(item.period_id)

        db.session.delete(item)
        db.session.commit()

    run_with_retry(_op)


def list_items(period_id: int) -> list[PayrollItem]:
    _get_period(period_id)
    return (
        db.session.query(PayrollItem)
        .filter_by(period_id=period_id)
        .order_by(PayrollItem.id.asc())
        .all()
    )
