# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth, require_permission
from ..errors import STORE_FAILURE_BODY, error_body
from ..services import invoice_service
from ..services.concurrency import ConcurrencyConflict
from ..services.invoice_service import InvoiceNotFoundError
from ..validation import ValidationError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
@require_permission("VIEW_INVOICES")
def list_invoices_route():
    limit = request.args.get("limit", default=200, type=int)
    offset = request.args.get("offset", default=0, type=int)

    invoices, total = invoice_service.list_invoices(limit=limit, offset=offset)
    return jsonify({
        "invoices": [invoice.to_dict() for invoice in invoices],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@invoices_bp.get("/next-number")
@require_auth
@require_permission("VIEW_INVOICES")
def next_number_route():
    """Preview only; nothing is reserved."""
    return jsonify(invoice_service.preview_next_numbers())


@invoices_bp.get("/<int:invoice_id>")
@require_auth
@require_permission("VIEW_INVOICES")
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        return jsonify(error_body(e)), 404
    return jsonify({"invoice": invoice.to_dict(include_items=True)})


@invoices_bp.post("")
@require_auth
@require_permission("CREATE_INVOICE")
def create_invoice_route():
    """
    Issue an invoice and its receipt.

    Body: customer_name, optional customer_address / customer_tax_id,
    invoice_date, credit_days, due_date, note, discount, deposit and
    items [{description, qty, unit_price}]. Totals are computed here.
    """
    data = request.get_json(silent=True) or {}

    try:
        invoice = invoice_service.create_invoice(data, user_id=g.current_user.id)
        return jsonify({"invoice": invoice.to_dict(include_items=True)}), 201
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    except ConcurrencyConflict as e:
        return jsonify(error_body(e)), 409
    except SQLAlchemyError:
        current_app.logger.exception("Failed to create invoice")
        return jsonify(STORE_FAILURE_BODY), 500
