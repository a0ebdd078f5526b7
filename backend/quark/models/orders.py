from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


# Production stages in order; each may only advance to the next one.
INTAKE = "intake"
CUT = "cut"
ASSEMBLED = "assembled"
SEWN = "sewn"
QC = "QC"
SHIPPED = "shipped"
CANCELLED = "cancelled"

PRODUCTION_STAGES = (INTAKE, CUT, ASSEMBLED, SEWN, QC, SHIPPED)
PRODUCTION_STATUSES = PRODUCTION_STAGES + (CANCELLED,)
TERMINAL_STATUSES = frozenset({SHIPPED, CANCELLED})


class Order(db.Model):
    """
    Production order for a set of car mats.

    LIFECYCLE (see services/production_service.py):
        intake -> cut -> assembled -> sewn -> QC -> shipped
        any non-terminal stage -> cancelled

    DESIGN:
    - order_no is allocated from document_sequences at creation and never changes
    - production_status only moves through validated transitions
    - version_id guards the status column against concurrent transitions
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_date", "production_status", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "QK-2026-0007")
    order_no = db.Column(db.String(32), nullable=False, unique=True)
    order_date = db.Column(db.Date, nullable=False, index=True)

    # Material descriptor (copied to stock on cancellation)
    car_model = db.Column(db.String(128), nullable=False)
    car_year = db.Column(db.String(16), nullable=True)
    material_type = db.Column(db.String(64), nullable=True)
    material_color = db.Column(db.String(64), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    channel = db.Column(db.String(64), nullable=True)
    customer = db.Column(db.String(255), nullable=True)
    payment_status = db.Column(db.String(32), nullable=False, default="unpaid")
    set_type = db.Column(db.String(64), nullable=True)
    note = db.Column(db.Text, nullable=True)

    production_status = db.Column(db.String(16), nullable=False, default=INTAKE, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def material_descriptor(self) -> dict:
        return {
            "car_model": self.car_model,
            "car_year": self.car_year,
            "material_type": self.material_type,
            "material_color": self.material_color,
            "quantity": self.quantity,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_no": self.order_no,
            "order_date": to_iso_date(self.order_date),
            **self.material_descriptor(),
            "channel": self.channel,
            "customer": self.customer,
            "payment_status": self.payment_status,
            "set_type": self.set_type,
            "note": self.note,
            "production_status": self.production_status,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class OrderStatusLog(db.Model):
    """
    Append-only record of every production status an order has entered.

    IMMUTABLE: rows are written in the same transaction as the status change
    they describe and are never updated or deleted.
    """
    __tablename__ = "order_status_log"
    __table_args__ = (
        db.Index("ix_order_status_log_order", "order_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("status_log", lazy=True, order_by="OrderStatusLog.id"))
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "status": self.status,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "created_at": to_utc_z(self.created_at),
        }
