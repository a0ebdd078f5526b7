# Overview: Service-layer operations for raw-material stock; intake, take-out and cancellation reconciliation.

from __future__ import annotations

from sqlalchemy import update

from ..errors import QuarkError
from ..extensions import db
from ..models import Order, StockEntry
from ..models.orders import CANCELLED
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_rules_material, validate_payload
from .concurrency import run_with_retry


STOCK_POLICY = ModelValidationPolicy(
    writable_fields={"car_model", "car_year", "material_type", "material_color", "quantity", "note"},
    required_on_create={"car_model", "quantity"},
)


class StockError(QuarkError, ValueError):
    kind = "stock_error"


class StockNotFoundError(StockError, LookupError):
    kind = "stock_not_found"


def add_stock_entry(payload: dict, *, user_id: int | None = None) -> StockEntry:
    """Direct stock intake."""
    patch = validate_payload(model=StockEntry, payload=payload, policy=STOCK_POLICY, partial=False)
    enforce_rules_material(patch)

    def _op() -> StockEntry:
        entry = StockEntry(created_by_user_id=user_id, **patch)
        db.session.add(entry)
        db.session.commit()
        return entry

    return run_with_retry(_op)


def reconciliation_note(order: Order) -> str:
    return f"Returned from cancelled order {order.order_no} (#{order.id})"


def reconcile_cancelled_order(order: Order, *, user_id: int | None = None) -> StockEntry:
    """
    Materialize a cancelled order's materials back into stock.

    Runs inside the cancellation transaction (flush only, no commit).
    The order must already carry the cancelled status.
    """
    if order.production_status != CANCELLED:
        raise StockError(
            f"Order {order.order_no} is '{order.production_status}', only cancelled orders are reconciled"
        )

    entry = StockEntry(
        **order.material_descriptor(),
        note=reconciliation_note(order),
        source_order_id=order.id,
        created_by_user_id=user_id,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def take_out_stock(entry_id: int) -> StockEntry:
    """
    Stamp stock_out_date; an entry can only leave stock once.

    The stamp is a conditional UPDATE on stock_out_date IS NULL, so of two
    concurrent take-outs exactly one matches the row.
    """
    def _op() -> StockEntry:
        stmt = (
            update(StockEntry)
            .where(StockEntry.id == entry_id, StockEntry.stock_out_date.is_(None))
            .values(stock_out_date=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if not result.rowcount:
            exists = db.session.query(StockEntry.id).filter_by(id=entry_id).first()
            if exists is None:
                raise StockNotFoundError(f"Stock entry {entry_id} not found")
            raise StockError(f"Stock entry {entry_id} was already taken out")

        db.session.commit()
        return (
            db.session.query(StockEntry)
            .filter_by(id=entry_id)
            .populate_existing()
            .one()
        )

    return run_with_retry(_op)


def list_stock(*, in_stock_only: bool = False, source_order_id: int | None = None, limit: int = 200) -> list[StockEntry]:
    query = db.session.query(StockEntry)
    if in_stock_only:
        query = query.filter(StockEntry.stock_out_date.is_(None))
    if source_order_id is not None:
        query = query.filter_by(source_order_id=source_order_id)

    limit = max(1, min(limit, 500))
    return query.order_by(StockEntry.id.desc()).limit(limit).all()
