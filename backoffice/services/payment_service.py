# backoffice/services/payment_service.py
import logging

from backoffice.models.activityLog import ActivityAction
from backoffice.models.invoice import InvoiceStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.errors import NotFoundError
from backoffice.services.state_machine import check_invoice_transition

logger = logging.getLogger(__name__)


def record_payment(repository, advancer, invoice_id, amount_paid, payment_date, user_id, notes=None):
    """
    Record a payment against an invoice and mark the invoice PAID.

    The payment, the status change, the audit entry and, for subscription
    invoices, a pending subscription advance are committed together. The
    advance is then applied on a best-effort basis; if that fails the payment
    still stands and the advance is retried later.

    Returns:
        str: id of the new payment
    """
    invoice = repository.get_invoice(invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found", details={"invoiceId": invoice_id})
    check_invoice_transition(invoice.status, InvoiceStatus.PAID)

    batch = BillingBatch()
    payment_id = batch.add_payment(
        invoice_id=invoice.id,
        amount_paid=amount_paid,
        payment_date=payment_date,
        recorded_by_user_id=user_id,
        notes=notes or "",
    )
    batch.set_invoice_status(invoice.id, InvoiceStatus.PAID)
    batch.log_activity(
        ActivityAction.RECORD_PAYMENT,
        {"invoiceId": invoice.id, "amountPaid": str(amount_paid)},
        user_id=user_id,
    )

    advance_id = None
    if invoice.subscription_id:
        advance_id = batch.add_advance(
            subscription_id=invoice.subscription_id,
            invoice_id=invoice.id,
            period_end=invoice.period_end or payment_date,
        )

    repository.commit_batch(batch)
    logger.info("Recorded payment %s for invoice %s", payment_id, invoice.id)

    if advance_id is not None:
        advancer.try_apply(advance_id)

    return payment_id
