from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from backoffice.repositories.sqlalchemy_repository import get_repository
from backoffice.services import billing_context
from backoffice.services.errors import NotFoundError
from backoffice.services.invoice_service import create_manual_invoice
from backoffice.services.overdue_service import update_overdue_invoices
from backoffice.services.payload_formatters import format_invoice
from backoffice.services.payload_parsers import require_fields, parse_amount, parse_date
from backoffice.services.payment_service import record_payment

bp_billing = Blueprint('billing', __name__, url_prefix='/api/billing')


@bp_billing.post('/payments')
@jwt_required()
def post_payment():
    data = request.get_json(silent=True) or {}
    require_fields(data, "invoiceId", "amountPaid", "paymentDate")
    amount_paid = parse_amount(data["amountPaid"], "amountPaid")
    payment_date = parse_date(data["paymentDate"], "paymentDate")

    repo = get_repository()
    payment_id = record_payment(
        repo,
        billing_context.build_advancer(repo),
        invoice_id=data["invoiceId"],
        amount_paid=amount_paid,
        payment_date=payment_date,
        user_id=get_jwt_identity(),
        notes=data.get("notes"),
    )
    return jsonify({"success": True, "paymentId": payment_id}), 201


@bp_billing.post('/invoices/manual')
@jwt_required()
def post_manual_invoice():
    data = request.get_json(silent=True) or {}
    require_fields(data, "customerId", "amount")
    invoice_id = create_manual_invoice(
        get_repository(),
        customer_id=data["customerId"],
        amount=parse_amount(data["amount"], "amount"),
        today=billing_context.today(),
        user_id=get_jwt_identity(),
        period_start=parse_date(data.get("periodStart"), "periodStart"),
        period_end=parse_date(data.get("periodEnd"), "periodEnd"),
        notes=data.get("notes"),
    )
    current_app.logger.info(f"Manual invoice {invoice_id} created for customer {data['customerId']}")
    return jsonify({"success": True, "invoiceId": invoice_id}), 201


@bp_billing.post('/invoices/generate')
@jwt_required()
def generate_invoices_now():
    """Runs the daily generation on demand (operational testing)."""
    result = billing_context.build_generator().run(billing_context.today())
    return jsonify({"success": True, "count": result.created, "message": result.message}), 200


@bp_billing.post('/invoices/update-overdue')
@jwt_required()
def update_overdue_now():
    count = update_overdue_invoices(get_repository(), billing_context.today())
    return jsonify({"success": True, "count": count}), 200


@bp_billing.get('/invoices/<string:invoice_id>')
@jwt_required()
def get_invoice(invoice_id):
    inv = get_repository().get_invoice(invoice_id)
    if inv is None:
        raise NotFoundError("Invoice not found", details={"invoiceId": invoice_id})
    return jsonify(format_invoice(inv)), 200
