from __future__ import annotations

from ..extensions import db
from ..serialization import to_number
from ..time_utils import to_iso_date, to_utc_z

class PayrollPeriod(db.Model):
    """
    Pay period (inclusive date range) that owns payroll items.

    LIFECYCLE: open <-> locked (reversible flag, every toggle recorded in
    payroll_period_lock_events).

    INVARIANTS:
    - date ranges of distinct periods never overlap (checked on creation)
    - a locked period accepts no item inserts, updates or deletes

    `revision` is bumped by every item write through a conditional
    `WHERE is_locked = false` update; that update is what makes the lock
    check and the item write one atomic unit.
    """
    __tablename__ = "payroll_periods"
    __table_args__ = (
        db.Index("ix_payroll_periods_range", "start_date", "end_date"),
        db.CheckConstraint("start_date <= end_date", name="ck_payroll_periods_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    period_no = db.Column(db.String(32), nullable=False, unique=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    locked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    locked_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    unlocked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    unlocked_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    revision = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "period_no": self.period_no,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "is_locked": self.is_locked,
            "locked_at": to_utc_z(self.locked_at) if self.locked_at else None,
            "locked_by_user_id": self.locked_by_user_id,
            "unlocked_at": to_utc_z(self.unlocked_at) if self.unlocked_at else None,
            "unlocked_by_user_id": self.unlocked_by_user_id,
            "revision": self.revision,
            "created_at": to_utc_z(self.created_at),
        }


class PayrollPeriodLockEvent(db.Model):
    """Append-only history of lock/unlock toggles."""
    __tablename__ = "payroll_period_lock_events"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    period_id = db.Column(db.Integer, db.ForeignKey("payroll_periods.id"), nullable=False, index=True)
    action = db.Column(db.String(8), nullable=False)  # LOCK, UNLOCK
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    period = db.relationship("PayrollPeriod", backref=db.backref("lock_events", lazy=True, order_by="PayrollPeriodLockEvent.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "period_id": self.period_id,
            "action": self.action,
            "user_id": self.user_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class PayrollItem(db.Model):
    """
    One worker's pay for one period.

    piece_total, ot_total and total are derived by
    services/payroll_calculator.compute_pay and never accepted from callers.
    """
    __tablename__ = "payroll_items"
    __table_args__ = (
        db.Index("ix_payroll_items_period_user", "period_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    period_id = db.Column(db.Integer, db.ForeignKey("payroll_periods.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    pay_type = db.Column(db.String(8), nullable=False)  # daily, piece

    # Inputs
    daily_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    work_days = db.Column(db.Numeric(6, 2), nullable=False, default=0)
    piece_count = db.Column(db.Integer, nullable=False, default=0)
    extra_rate = db.Column(db.Numeric(12, 2), nullable=True)
    ot_hours = db.Column(db.Numeric(6, 2), nullable=False, default=0)
    bonus = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    deduction = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Derived
    piece_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    ot_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    note = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    period = db.relationship("PayrollPeriod", backref=db.backref("items", lazy=True))
    user = db.relationship("User", foreign_keys=[user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "period_id": self.period_id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "pay_type": self.pay_type,
            "daily_rate": to_number(self.daily_rate),
            "work_days": to_number(self.work_days),
            "piece_count": self.piece_count,
            "extra_rate": to_number(self.extra_rate),
            "ot_hours": to_number(self.ot_hours),
            "bonus": to_number(self.bonus),
            "deduction": to_number(self.deduction),
            "piece_total": to_number(self.piece_total),
            "ot_total": to_number(self.ot_total),
            "total": to_number(self.total),
            "note": self.note,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }
