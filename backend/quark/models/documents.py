from __future__ import annotations

from ..extensions import db
from ..serialization import to_number
from ..time_utils import to_iso_date, to_utc_z

class DocumentSequence(db.Model):
    """
    Running number per (document_type, period_key).

    The only row family with write contention on document creation:
    allocation is an atomic `current_number = current_number + 1`
    (see services/document_service.py).
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "period_key", name="uq_document_sequences_type_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False)
    period_key = db.Column(db.String(16), nullable=False)
    # Last number handed out (0 = none yet)
    current_number = db.Column(db.Integer, nullable=False, default=0)


class Invoice(db.Model):
    """
    Tax invoice issued together with its receipt.

    invoice_no (IV260001) and receipt_no (RE260001) are allocated in the
    same transaction that inserts the invoice.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_date", "invoice_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_no = db.Column(db.String(32), nullable=False, unique=True)
    receipt_no = db.Column(db.String(32), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_address = db.Column(db.Text, nullable=True)
    customer_tax_id = db.Column(db.String(32), nullable=True)

    invoice_date = db.Column(db.Date, nullable=False)
    credit_days = db.Column(db.Integer, nullable=False, default=0)
    due_date = db.Column(db.Date, nullable=True)
    note = db.Column(db.Text, nullable=True)

    # Derived server-side from the items
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    after_discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    deposit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    vat_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_no": self.invoice_no,
            "receipt_no": self.receipt_no,
            "customer_name": self.customer_name,
            "customer_address": self.customer_address,
            "customer_tax_id": self.customer_tax_id,
            "invoice_date": to_iso_date(self.invoice_date),
            "credit_days": self.credit_days,
            "due_date": to_iso_date(self.due_date),
            "note": self.note,
            "total_amount": to_number(self.total_amount),
            "discount": to_number(self.discount),
            "after_discount": to_number(self.after_discount),
            "deposit": to_number(self.deposit),
            "net_amount": to_number(self.net_amount),
            "vat_amount": to_number(self.vat_amount),
            "grand_total": to_number(self.grand_total),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "item_no", name="uq_invoice_items_invoice_item_no"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    item_no = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=False)
    qty = db.Column(db.Numeric(12, 2), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    invoice = db.relationship("Invoice", backref=db.backref("items", lazy=True, order_by="InvoiceItem.item_no"))

    def to_dict(self) -> dict:
        return {
            "item_no": self.item_no,
            "description": self.description,
            "qty": to_number(self.qty),
            "unit_price": to_number(self.unit_price),
            "total": to_number(self.total),
        }
