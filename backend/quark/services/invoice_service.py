# Overview: Service-layer operations for invoices; paired IV/RE numbering and server-side totals.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from ..errors import QuarkError
from ..extensions import db
from ..models import Invoice, InvoiceItem
from ..time_utils import today
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_decimal,
    non_negative_decimal,
    validate_payload,
)
from .concurrency import run_with_retry
from .document_service import (
    INVOICE,
    RECEIPT,
    flush_new_document,
    format_yearly_number,
    next_sequence,
    peek_next_sequence,
    yearly_period_key,
)


INVOICE_PREFIX = "IV"
RECEIPT_PREFIX = "RE"

INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name",
        "customer_address",
        "customer_tax_id",
        "invoice_date",
        "credit_days",
        "due_date",
        "note",
    },
    required_on_create={"customer_name"},
)

_CENTS = Decimal("0.01")


class InvoiceNotFoundError(QuarkError, LookupError):
    kind = "invoice_not_found"


@dataclass(frozen=True)
class InvoiceTotals:
    total_amount: Decimal
    discount: Decimal
    after_discount: Decimal
    deposit: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    grand_total: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def parse_items(raw_items) -> list[dict]:
    """Validate line items and derive each line total (qty * unit_price)."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        description = str(raw.get("description") or "").strip()
        if not description:
            raise ValidationError(f"items[{index}].description is required")
        if raw.get("qty") in (None, ""):
            raise ValidationError(f"items[{index}].qty is required")
        qty = coerce_decimal(raw["qty"], f"items[{index}].qty")
        if qty <= 0:
            raise ValidationError(f"items[{index}].qty must be > 0")
        unit_price = non_negative_decimal(raw, "unit_price")

        items.append({
            "item_no": index,
            "description": description,
            "qty": qty,
            "unit_price": unit_price,
            "total": _money(qty * unit_price),
        })
    return items


def compute_totals(items: list[dict], *, discount: Decimal, deposit: Decimal, vat_rate: Decimal) -> InvoiceTotals:
    total = sum((item["total"] for item in items), Decimal("0"))
    after_discount = total - discount
    if after_discount < 0:
        raise ValidationError("discount cannot exceed the invoice total")
    net = after_discount - deposit
    if net < 0:
        raise ValidationError("deposit cannot exceed the discounted total")
    vat = _money(net * vat_rate)

    return InvoiceTotals(
        total_amount=_money(total),
        discount=_money(discount),
        after_discount=_money(after_discount),
        deposit=_money(deposit),
        net_amount=_money(net),
        vat_amount=vat,
        grand_total=_money(net + vat),
    )


def create_invoice(payload: dict, *, user_id: int | None = None) -> Invoice:
    """
    Issue an invoice together with its receipt.

    Both numbers come from the shared allocator inside the transaction
    that inserts the invoice and its items.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    header = {k: v for k, v in payload.items() if k in INVOICE_POLICY.writable_fields}
    unknown = set(payload) - INVOICE_POLICY.writable_fields - {"items", "discount", "deposit"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    patch = validate_payload(model=Invoice, payload=header, policy=INVOICE_POLICY, partial=False)
    items = parse_items(payload.get("items"))

    invoice_date: date = patch.pop("invoice_date", None) or today()
    credit_days = patch.pop("credit_days", None) or 0
    if credit_days < 0:
        raise ValidationError("credit_days must be >= 0")
    due_date = patch.pop("due_date", None) or invoice_date + timedelta(days=credit_days)

    totals = compute_totals(
        items,
        discount=non_negative_decimal(payload, "discount"),
        deposit=non_negative_decimal(payload, "deposit"),
        vat_rate=Decimal(str(current_app.config["VAT_RATE"])),
    )

    period_key = yearly_period_key(invoice_date)

    def _op() -> Invoice:
        invoice_number = next_sequence(INVOICE, period_key)
        receipt_number = next_sequence(RECEIPT, period_key)

        invoice = Invoice(
            invoice_no=format_yearly_number(INVOICE_PREFIX, invoice_date.year, invoice_number),
            receipt_no=format_yearly_number(RECEIPT_PREFIX, invoice_date.year, receipt_number),
            invoice_date=invoice_date,
            credit_days=credit_days,
            due_date=due_date,
            total_amount=totals.total_amount,
            discount=totals.discount,
            after_discount=totals.after_discount,
            deposit=totals.deposit,
            net_amount=totals.net_amount,
            vat_amount=totals.vat_amount,
            grand_total=totals.grand_total,
            created_by_user_id=user_id,
            **patch,
        )
        flush_new_document(invoice, "invoice_no")

        for item in items:
            db.session.add(InvoiceItem(invoice_id=invoice.id, **item))

        db.session.commit()
        return invoice

    return run_with_retry(_op, attempts=5)


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.query(Invoice).filter_by(id=invoice_id).first()
    if invoice is None:
        raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def list_invoices(*, limit: int = 200, offset: int = 0) -> tuple[list[Invoice], int]:
    query = db.session.query(Invoice)
    total = query.count()

    if offset < 0:
        offset = 0
    limit = max(1, min(limit, 500))

    invoices = query.order_by(Invoice.id.desc()).offset(offset).limit(limit).all()
    return invoices, total


def preview_next_numbers(on: date | None = None) -> dict:
    """Numbers the next invoice would receive. Reserves nothing."""
    on = on or today()
    period_key = yearly_period_key(on)
    return {
        "invoice_no": format_yearly_number(INVOICE_PREFIX, on.year, peek_next_sequence(INVOICE, period_key)),
        "receipt_no": format_yearly_number(RECEIPT_PREFIX, on.year, peek_next_sequence(RECEIPT, period_key)),
    }
