# backoffice/services/subscription_advancer.py
"""
Applies the pending subscription advances that payments leave behind.

Recording a payment writes a PENDING advance row in the same batch as the
payment itself. Moving the subscription forward happens afterwards and may
fail without touching the payment; failed rows stay PENDING and are picked up
again by ``drain``.
"""
import logging

from backoffice.models.subscriptionAdvance import AdvanceStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.billing_cycle import ROLLOVER, next_billing_date
from backoffice.services.errors import ConcurrentUpdateError, NotFoundError
from backoffice.services.state_machine import activation_update

logger = logging.getLogger(__name__)

MAX_CONFLICT_RETRIES = 1


class SubscriptionAdvancer:

    def __init__(self, repository, overflow=ROLLOVER):
        self.repository = repository
        self.overflow = overflow

    def apply(self, advance_id):
        """Move the subscription past the paid period and close the advance row."""
        advance = self.repository.get_advance(advance_id)
        if advance is None:
            raise NotFoundError(f"Subscription advance {advance_id} not found")
        if advance.status == AdvanceStatus.DONE:
            return advance

        subscription = self.repository.get_subscription(advance.subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {advance.subscription_id} not found")
        plan = self.repository.get_plan(subscription.plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {subscription.plan_id} not found")

        new_date = next_billing_date(advance.period_end, plan.billing_cycle, subscription.billing_day, self.overflow)

        values = {}
        if subscription.next_billing_date is None or new_date > subscription.next_billing_date:
            values["next_billing_date"] = new_date
        elif new_date < subscription.next_billing_date:
            logger.info("Subscription %s already billed up to %s, keeping it (paid period ends %s)",
                        subscription.id, subscription.next_billing_date, advance.period_end)
        values.update(activation_update(subscription))

        batch = BillingBatch()
        if values:
            batch.update_subscription(subscription, **values)
        batch.complete_advance(advance.id)
        self.repository.commit_batch(batch)
        return advance

    def try_apply(self, advance_id):
        """
        Apply an advance, retrying once on a concurrent subscription write.

        Never raises: a failure is logged and recorded on the advance row,
        which stays PENDING for the next ``drain``.

        Returns:
            bool: True when the subscription was advanced
        """
        error = None
        for attempt in range(MAX_CONFLICT_RETRIES + 1):
            try:
                self.apply(advance_id)
                return True
            except ConcurrentUpdateError as exc:
                logger.warning("Concurrent update while advancing %s (attempt %s)", advance_id, attempt + 1)
                error = exc
            except Exception as exc:
                logger.exception("Failed to advance subscription for advance %s", advance_id)
                error = exc
                break

        try:
            self.repository.record_advance_failure(advance_id, error)
        except Exception:
            logger.exception("Could not record failure on advance %s", advance_id)
        return False

    def drain(self):
        """Retry every PENDING advance. Returns the number applied."""
        pending = [advance.id for advance in self.repository.get_pending_advances()]
        applied = sum(1 for advance_id in pending if self.try_apply(advance_id))
        if pending:
            logger.info("Applied %s of %s pending subscription advances", applied, len(pending))
        return applied
