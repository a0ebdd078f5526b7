from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class StockEntry(db.Model):
    """
    Raw-material stock record.

    Created either by direct intake or by reconciliation of a cancelled order
    (source_order_id set). stock_out_date is stamped when the material is
    taken out again.
    """
    __tablename__ = "stock"
    __table_args__ = (
        db.Index("ix_stock_in_stock", "stock_out_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    car_model = db.Column(db.String(128), nullable=False)
    car_year = db.Column(db.String(16), nullable=True)
    material_type = db.Column(db.String(64), nullable=True)
    material_color = db.Column(db.String(64), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    note = db.Column(db.Text, nullable=True)
    stock_out_date = db.Column(db.DateTime(timezone=True), nullable=True)

    # Set when the entry was materialized from a cancelled order
    source_order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    source_order = db.relationship("Order", backref=db.backref("stock_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "car_model": self.car_model,
            "car_year": self.car_year,
            "material_type": self.material_type,
            "material_color": self.material_color,
            "quantity": self.quantity,
            "note": self.note,
            "stock_out_date": to_utc_z(self.stock_out_date) if self.stock_out_date else None,
            "source_order_id": self.source_order_id,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
