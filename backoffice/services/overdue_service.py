# backoffice/services/overdue_service.py
import logging

from backoffice.models.activityLog import ActivityAction
from backoffice.models.invoice import InvoiceStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.state_machine import check_invoice_transition

logger = logging.getLogger(__name__)


def update_overdue_invoices(repository, today):
    """
    Flag UNPAID invoices whose due date is before ``today`` as OVERDUE.

    Only UNPAID invoices are selected, so running it again the same day
    changes nothing.

    Returns:
        int: number of invoices flagged
    """
    invoices = repository.get_unpaid_invoices_due_before(today)

    batch = BillingBatch()
    for invoice in invoices:
        check_invoice_transition(invoice.status, InvoiceStatus.OVERDUE)
        batch.set_invoice_status(invoice.id, InvoiceStatus.OVERDUE)
    batch.log_activity(ActivityAction.UPDATE_OVERDUE_INVOICES, {"count": len(invoices)})
    repository.commit_batch(batch)

    logger.info("Updated %s invoices to OVERDUE", len(invoices))
    return len(invoices)
