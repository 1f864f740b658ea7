# backoffice/repositories/sqlalchemy_repository.py
import logging

from sqlalchemy import update, and_
from sqlalchemy.sql import func

from backoffice.extension.extensions import db
from backoffice.models.customer import Customer
from backoffice.models.plan import Plan
from backoffice.models.subscription import Subscription
from backoffice.models.invoice import Invoice, InvoiceStatus
from backoffice.models.payment import Payment
from backoffice.models.activityLog import ActivityLog
from backoffice.models.subscriptionAdvance import SubscriptionAdvance, AdvanceStatus
from backoffice.repositories.billing_repository import BillingRepository
from backoffice.services.errors import ConcurrentUpdateError
from backoffice.services.state_machine import BILLABLE_STATUSES

logger = logging.getLogger(__name__)

_NO_SYNC = {"synchronize_session": False}


class SQLAlchemyBillingRepository(BillingRepository):
    """Billing repository over the Flask-SQLAlchemy session."""

    def __init__(self, session=None):
        self.session = session or db.session

    # --- reads -----------------------------------------------------------

    def get_subscriptions_due_for_billing(self, cutoff):
        return (Subscription.query
                .filter(Subscription.status.in_(BILLABLE_STATUSES))
                .filter(Subscription.next_billing_date <= cutoff)
                .order_by(Subscription.next_billing_date.asc(), Subscription.id.asc())
                .all())

    def get_subscription(self, subscription_id):
        return self.session.get(Subscription, subscription_id)

    def get_subscriptions_for_customer(self, customer_id):
        return Subscription.query.filter_by(customer_id=customer_id).all()

    def get_customer(self, customer_id):
        return self.session.get(Customer, customer_id)

    def get_customer_store_ids(self):
        rows = (self.session.query(Customer.store_id)
                .filter(Customer.store_id.isnot(None), Customer.store_id != '')
                .all())
        return {store_id for (store_id,) in rows}

    def get_plan(self, plan_id):
        return self.session.get(Plan, plan_id)

    def get_invoice(self, invoice_id):
        return self.session.get(Invoice, invoice_id)

    def get_invoices_for_customer(self, customer_id):
        return (Invoice.query
                .filter_by(customer_id=customer_id)
                .order_by(Invoice.period_start.asc())
                .all())

    def get_paid_invoices_for_customer_in_window(self, customer_id, start, end):
        # (customer_id, period_start) index narrows the scan, the caller confirms the overlap
        return (Invoice.query
                .filter(Invoice.customer_id == customer_id)
                .filter(Invoice.status == InvoiceStatus.PAID)
                .filter(Invoice.period_start.isnot(None), Invoice.period_end.isnot(None))
                .filter(and_(Invoice.period_start <= end, Invoice.period_end >= start))
                .order_by(Invoice.period_start.asc())
                .all())

    def get_invoice_for_subscription_by_period_start(self, subscription_id, period_start):
        return (Invoice.query
                .filter_by(subscription_id=subscription_id, period_start=period_start)
                .order_by(Invoice.created_at.asc())
                .first())

    def has_payment_for_invoice(self, invoice_id):
        return self.session.query(Payment.id).filter_by(invoice_id=invoice_id).first() is not None

    def get_unpaid_invoices_due_before(self, day):
        return (Invoice.query
                .filter(Invoice.status == InvoiceStatus.UNPAID)
                .filter(Invoice.due_date < day)
                .all())

    def get_advance(self, advance_id):
        return self.session.get(SubscriptionAdvance, advance_id)

    def get_pending_advances(self):
        return (SubscriptionAdvance.query
                .filter_by(status=AdvanceStatus.PENDING)
                .order_by(SubscriptionAdvance.created_at.asc())
                .all())

    # --- writes ----------------------------------------------------------

    def record_advance_failure(self, advance_id, error):
        try:
            self.session.execute(
                update(SubscriptionAdvance)
                .where(SubscriptionAdvance.id == advance_id)
                .values(attempts=SubscriptionAdvance.attempts + 1, last_error=str(error)[:2000]),
                execution_options=_NO_SYNC,
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def discard(self):
        # a failed statement leaves the transaction aborted on Postgres
        self.session.rollback()

    def commit_batch(self, batch):
        session = self.session
        try:
            for values in batch.customers:
                session.add(Customer(**values))
            for values in batch.subscriptions:
                session.add(Subscription(**values))
            for values in batch.invoices:
                session.add(Invoice(**values))
            for values in batch.payments:
                session.add(Payment(**values))
            for values in batch.advances:
                session.add(SubscriptionAdvance(**values))
            for values in batch.activities:
                session.add(ActivityLog(**values))
            session.flush()

            for invoice_id, values in batch.invoice_updates.items():
                session.execute(
                    update(Invoice).where(Invoice.id == invoice_id).values(**values),
                    execution_options=_NO_SYNC,
                )

            for change in batch.subscription_updates:
                result = session.execute(
                    update(Subscription)
                    .where(Subscription.id == change.subscription_id)
                    .where(Subscription.version == change.expected_version)
                    .values(version=Subscription.version + 1, **change.values),
                    execution_options=_NO_SYNC,
                )
                if result.rowcount != 1:
                    raise ConcurrentUpdateError(
                        f"Subscription {change.subscription_id} changed since version {change.expected_version}",
                        details={"subscriptionId": change.subscription_id},
                    )

            for advance_id in batch.completed_advances:
                session.execute(
                    update(SubscriptionAdvance)
                    .where(SubscriptionAdvance.id == advance_id)
                    .values(status=AdvanceStatus.DONE,
                            attempts=SubscriptionAdvance.attempts + 1,
                            completed_at=func.now()),
                    execution_options=_NO_SYNC,
                )

            session.commit()
        except Exception:
            session.rollback()
            raise
        logger.debug(
            "Batch committed: %s new invoices, %s invoice updates, %s subscription updates",
            len(batch.invoices), len(batch.invoice_updates), len(batch.subscription_updates),
        )


def get_repository():
    return SQLAlchemyBillingRepository(db.session)
