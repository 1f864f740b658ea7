# backoffice/services/invoice_generator.py
"""
Daily invoice generation.

Each due subscription is billed for at most one period per run. Before an
invoice is created the run checks, in order:

1. an invoice of the same subscription starting on the same day (exact match),
2. any PAID invoice of the same customer, manual or automatic, whose period
   overlaps the candidate period.

A paid match means the period is already covered: the subscription is moved
on without a new invoice. An unpaid exact match without a payment stalls the
subscription until that invoice is settled, so unpaid invoices do not pile up.

TRIAL-cycle plans have a zero-length period: their invoice starts and ends on
the same day and the billing date does not move.

Everything a run stages is committed in a single batch.
"""
import logging
from dataclasses import dataclass

from backoffice.models.activityLog import ActivityAction
from backoffice.models.customer import CustomerStatus
from backoffice.models.invoice import InvoiceStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.billing_cycle import ROLLOVER, next_billing_date, overlaps, period_end
from backoffice.services.state_machine import activation_update, check_invoice_transition, forward_only

logger = logging.getLogger(__name__)

CREATED = "created"
ADVANCED = "advanced"
STALLED = "stalled"
SKIPPED = "skipped"


@dataclass
class GenerationResult:
    created: int = 0
    advanced: int = 0
    stalled: int = 0
    skipped: int = 0
    failed: int = 0

    def count(self, outcome):
        setattr(self, outcome, getattr(self, outcome) + 1)

    @property
    def message(self):
        return f"Generated {self.created} invoices"


class InvoiceGenerator:

    def __init__(self, repository, overflow=ROLLOVER, advancer=None):
        self.repository = repository
        self.overflow = overflow
        self.advancer = advancer

    def run(self, today):
        """Bill every subscription due on or before ``today``."""
        if self.advancer is not None:
            self.advancer.drain()

        batch = BillingBatch()
        result = GenerationResult()

        for subscription in self.repository.get_subscriptions_due_for_billing(today):
            staged = BillingBatch()
            try:
                outcome = self._bill(subscription, staged)
            except Exception:
                # one broken subscription must not hold up the rest of the run
                logger.exception("Failed to bill subscription %s", subscription.id)
                result.failed += 1
                self.repository.discard()
                continue
            batch.merge(staged)
            result.count(outcome)

        batch.log_activity(ActivityAction.GENERATE_INVOICES, {
            "count": result.created,
            "advanced": result.advanced,
            "stalled": result.stalled,
            "skipped": result.skipped,
            "failed": result.failed,
        })
        self.repository.commit_batch(batch)

        logger.info(result.message)
        return result

    def _bill(self, subscription, batch):
        customer = self.repository.get_customer(subscription.customer_id)
        if customer is None:
            logger.warning("Customer %s not found for subscription %s", subscription.customer_id, subscription.id)
            return SKIPPED
        if customer.status == CustomerStatus.LEFT:
            logger.debug("Customer %s has left, not billing subscription %s", customer.id, subscription.id)
            return SKIPPED

        plan = self.repository.get_plan(subscription.plan_id)
        if plan is None:
            logger.warning("Plan %s not found for subscription %s", subscription.plan_id, subscription.id)
            return SKIPPED

        amount = subscription.custom_price if subscription.custom_price is not None else plan.base_price
        start = subscription.next_billing_date
        end = period_end(start, plan.billing_cycle)

        existing = self.repository.get_invoice_for_subscription_by_period_start(subscription.id, start)
        if existing is not None:
            if existing.status == InvoiceStatus.PAID:
                self._advance(subscription, plan, end, batch)
                return ADVANCED
            if self.repository.has_payment_for_invoice(existing.id):
                check_invoice_transition(existing.status, InvoiceStatus.PAID)
                batch.set_invoice_status(existing.id, InvoiceStatus.PAID)
                self._advance(subscription, plan, end, batch)
                return ADVANCED
            logger.info("Subscription %s waits on unpaid invoice %s", subscription.id, existing.id)
            return STALLED

        for invoice in self.repository.get_paid_invoices_for_customer_in_window(customer.id, start, end):
            if invoice.period_start is None or invoice.period_end is None:
                continue
            if invoice.status == InvoiceStatus.PAID and overlaps(invoice.period_start, invoice.period_end, start, end):
                logger.info("Period %s..%s of subscription %s already covered by invoice %s",
                            start, end, subscription.id, invoice.id)
                self._advance(subscription, plan, end, batch)
                return ADVANCED

        batch.add_invoice(
            subscription_id=subscription.id,
            customer_id=subscription.customer_id,
            amount=amount,
            due_date=start,     # billed at the start of the period
            status=InvoiceStatus.UNPAID,
            is_manual=False,
            period_start=start,
            period_end=end,
        )
        self._advance(subscription, plan, end, batch)
        return CREATED

    def _advance(self, subscription, plan, end, batch):
        new_date = next_billing_date(end, plan.billing_cycle, subscription.billing_day, self.overflow)
        values = {"next_billing_date": forward_only(subscription.next_billing_date, new_date)}
        values.update(activation_update(subscription))
        batch.update_subscription(subscription, **values)
