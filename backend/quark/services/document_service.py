# Overview: Service-layer operations for document numbering; atomic per-type, per-period counters.

"""
Document Sequence Allocation

INVARIANTS:
- No two callers ever receive the same (document_type, period_key, number).
- Numbers increase monotonically inside a period.
- Allocation happens inside the caller's transaction: if the document insert
  rolls back, so does the counter, and the number was never issued.

The counter row is advanced with a single
`UPDATE ... SET current_number = current_number + 1`, which takes the row
write lock until commit. Never derive the next number from
MAX(existing document numbers).
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from ..validation import ValidationError
from .concurrency import ConcurrencyConflict


ORDER = "ORDER"
INVOICE = "INVOICE"
RECEIPT = "RECEIPT"
PAYROLL_PERIOD = "PAYROLL_PERIOD"

# Partition for sequences that never restart
PERIOD_KEY_ALL = "ALL"


class DocumentSequenceError(ValidationError):
    """Raised when a sequence request is malformed."""
    kind = "invalid_sequence_request"


class SequenceContentionError(ConcurrencyConflict):
    """Two callers created the same counter row at once."""
    kind = "sequence_contention"


class DuplicateDocumentNumberError(ConcurrencyConflict):
    """The store rejected a document number as already used."""
    kind = "duplicate_document_number"


def yearly_period_key(on: date) -> str:
    return f"{on.year:04d}"


def next_sequence(document_type: str, period_key: str) -> int:
    """
    Atomically allocate the next number for (document_type, period_key).

    Does not commit. Call it from inside the unit of work that inserts the
    document and wrap that unit in run_with_retry.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not period_key:
        raise DocumentSequenceError("period_key is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.period_key == period_key,
        )
        .values(current_number=DocumentSequence.current_number + 1)
        .execution_options(synchronize_session="fetch")
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        return (
            db.session.query(DocumentSequence.current_number)
            .filter_by(document_type=document_type, period_key=period_key)
            .scalar()
        )

    seq = DocumentSequence(document_type=document_type, period_key=period_key, current_number=1)
    db.session.add(seq)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise SequenceContentionError(
            f"Sequence {document_type}/{period_key} was created concurrently"
        ) from exc
    return 1


def peek_next_sequence(document_type: str, period_key: str) -> int:
    """Number the next allocation would receive. Reserves nothing."""
    current = (
        db.session.query(DocumentSequence.current_number)
        .filter_by(document_type=document_type, period_key=period_key)
        .scalar()
    )
    return (current or 0) + 1


def flush_new_document(document, number_attr: str) -> None:
    """
    Insert a freshly numbered document, translating a uniqueness violation
    on its number into a retryable DuplicateDocumentNumberError.
    """
    db.session.add(document)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise DuplicateDocumentNumberError(
            f"Document number {getattr(document, number_attr)} is already in use"
        ) from exc


# =============================================================================
# Formatting (pure)
# =============================================================================

def format_order_number(prefix: str, year: int, number: int, pad: int = 4) -> str:
    """QK-2026-0007"""
    return f"{prefix}-{year:04d}-{number:0{pad}d}"


def format_yearly_number(prefix: str, year: int, number: int, pad: int = 4) -> str:
    """IV260007 / RE260007"""
    return f"{prefix}{year % 100:02d}{number:0{pad}d}"


def format_period_number(number: int, pad: int = 4) -> str:
    """PP-0007"""
    return f"PP-{number:0{pad}d}"
