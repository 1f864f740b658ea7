# backoffice/services/invoice_service.py
from backoffice.models.activityLog import ActivityAction
from backoffice.models.invoice import InvoiceStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.errors import InvalidArgumentError, NotFoundError


def create_manual_invoice(repository, customer_id, amount, today, user_id,
                          period_start=None, period_end=None, notes=None):
    """Ad-hoc invoice outside any subscription, due today. No duplicate check is made here."""
    if repository.get_customer(customer_id) is None:
        raise NotFoundError("Customer not found", details={"customerId": customer_id})
    if period_start and period_end and period_start > period_end:
        raise InvalidArgumentError("periodStart must not be after periodEnd")

    batch = BillingBatch()
    invoice_id = batch.add_invoice(
        subscription_id=None,
        customer_id=customer_id,
        amount=amount,
        due_date=today,
        status=InvoiceStatus.UNPAID,
        is_manual=True,
        period_start=period_start,
        period_end=period_end,
        notes=notes or "",
    )
    batch.log_activity(
        ActivityAction.CREATE_MANUAL_INVOICE,
        {"invoiceId": invoice_id, "customerId": customer_id, "amount": str(amount)},
        user_id=user_id,
    )
    repository.commit_batch(batch)
    return invoice_id
