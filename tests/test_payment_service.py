from datetime import date
from decimal import Decimal

import pytest

from backoffice.models.activityLog import ActivityAction
from backoffice.models.invoice import InvoiceStatus
from backoffice.models.plan import BillingCycle
from backoffice.models.subscription import SubscriptionStatus
from backoffice.models.subscriptionAdvance import AdvanceStatus
from backoffice.services.errors import ConcurrentUpdateError, NotFoundError
from backoffice.services.payment_service import record_payment
from backoffice.services.subscription_advancer import SubscriptionAdvancer

PAID_ON = date(2025, 11, 10)


@pytest.fixture
def advancer(repo):
    return SubscriptionAdvancer(repo)


@pytest.fixture
def billed(repo):
    """Weekly subscription with its 2025-11-09 invoice still open."""
    customer = repo.seed_customer()
    plan = repo.seed_plan(BillingCycle.WEEKLY)
    sub = repo.seed_subscription(customer, plan, next_billing_date=date(2025, 11, 9))
    invoice = repo.seed_invoice(customer, sub, period_start=date(2025, 11, 9), period_end=date(2025, 11, 16))
    return sub, invoice


def pay(repo, advancer, invoice_id, amount="100.00"):
    return record_payment(repo, advancer, invoice_id, Decimal(amount), PAID_ON, "staff-1", notes="cash")


def fail_advance_commits(repo, error="timeout"):
    """Let the payment batch through and fail every commit after it."""
    def hook():
        if repo.payments:
            repo.commit_failures.append(RuntimeError(error))
    repo.before_commit.append(hook)


class TestRecordPayment:

    def test_marks_invoice_paid_and_advances_subscription(self, repo, advancer, billed):
        sub, invoice = billed

        payment_id = pay(repo, advancer, invoice.id)

        assert invoice.status == InvoiceStatus.PAID
        assert sub.next_billing_date == date(2025, 11, 16)
        payment = repo.payments[payment_id]
        assert payment.amount_paid == Decimal("100.00")
        assert payment.payment_date == PAID_ON
        assert payment.recorded_by_user_id == "staff-1"
        assert payment.notes == "cash"

    def test_payment_is_audited(self, repo, advancer, billed):
        _, invoice = billed
        pay(repo, advancer, invoice.id)

        entry = repo.activities[-1]
        assert entry["action"] == ActivityAction.RECORD_PAYMENT
        assert entry["user_id"] == "staff-1"
        assert entry["details"]["invoiceId"] == invoice.id

    def test_overdue_invoice_can_be_paid(self, repo, advancer, billed):
        _, invoice = billed
        invoice.status = InvoiceStatus.OVERDUE
        pay(repo, advancer, invoice.id)
        assert invoice.status == InvoiceStatus.PAID

    def test_unknown_invoice(self, repo, advancer):
        with pytest.raises(NotFoundError):
            pay(repo, advancer, "missing")
        assert repo.payments == {}

    def test_repeated_payment_adds_a_second_record(self, repo, advancer, billed):
        sub, invoice = billed
        pay(repo, advancer, invoice.id)
        pay(repo, advancer, invoice.id, amount="5.00")

        assert len(repo.payments) == 2
        assert invoice.status == InvoiceStatus.PAID
        assert sub.next_billing_date == date(2025, 11, 16)

    def test_manual_invoice_leaves_subscriptions_alone(self, repo, advancer, billed):
        sub, invoice = billed
        manual = repo.seed_invoice(repo.customers[invoice.customer_id], None,
                                   period_start=date(2025, 11, 9), period_end=date(2025, 11, 16))

        pay(repo, advancer, manual.id)

        assert manual.status == InvoiceStatus.PAID
        assert repo.advances == {}
        assert sub.next_billing_date == date(2025, 11, 9)

    def test_trial_subscription_activated_by_payment(self, repo, advancer, billed):
        sub, invoice = billed
        sub.status = SubscriptionStatus.TRIAL
        pay(repo, advancer, invoice.id)
        assert sub.status == SubscriptionStatus.ACTIVE


class TestSubscriptionAdvance:

    def test_advance_row_written_with_payment_and_closed(self, repo, advancer, billed):
        _, invoice = billed
        pay(repo, advancer, invoice.id)

        (advance,) = repo.advances.values()
        assert advance.invoice_id == invoice.id
        assert advance.period_end == date(2025, 11, 16)
        assert advance.status == AdvanceStatus.DONE

    def test_never_moves_the_cursor_back(self, repo, advancer, billed):
        sub, invoice = billed
        # generator already ran twice more
        sub.next_billing_date = date(2025, 11, 23)

        pay(repo, advancer, invoice.id)

        assert sub.next_billing_date == date(2025, 11, 23)
        assert invoice.status == InvoiceStatus.PAID

    def test_failed_advance_keeps_the_payment(self, repo, advancer, billed):
        sub, invoice = billed
        fail_advance_commits(repo)

        payment_id = pay(repo, advancer, invoice.id)

        assert payment_id in repo.payments
        assert invoice.status == InvoiceStatus.PAID
        assert sub.next_billing_date == date(2025, 11, 9)
        (advance,) = repo.advances.values()
        assert advance.status == AdvanceStatus.PENDING
        assert advance.attempts == 1
        assert advance.last_error == "timeout"

    def test_pending_advance_applied_on_drain(self, repo, advancer, billed):
        sub, invoice = billed
        fail_advance_commits(repo)
        pay(repo, advancer, invoice.id)
        repo.before_commit.clear()

        assert advancer.drain() == 1
        assert sub.next_billing_date == date(2025, 11, 16)
        assert all(a.status == AdvanceStatus.DONE for a in repo.advances.values())

    def test_conflict_is_retried(self, repo, advancer, billed):
        sub, invoice = billed
        bumps = []

        def concurrent_writer():
            # one stale write for the advance batch, then get out of the way
            if repo.payments and not bumps:
                bumps.append(1)
                sub.version += 1

        repo.before_commit.append(concurrent_writer)

        pay(repo, advancer, invoice.id)

        assert sub.next_billing_date == date(2025, 11, 16)
        assert sub.version == 3

    def test_persistent_conflict_leaves_advance_pending(self, repo, advancer, billed):
        sub, invoice = billed

        def concurrent_writer():
            if repo.payments:
                sub.version += 1

        repo.before_commit.append(concurrent_writer)

        pay(repo, advancer, invoice.id)

        (advance,) = repo.advances.values()
        assert advance.status == AdvanceStatus.PENDING
        assert "changed" in advance.last_error

    def test_apply_unknown_advance(self, advancer):
        with pytest.raises(NotFoundError):
            advancer.apply("missing")

    def test_apply_reports_conflict(self, repo, advancer, billed):
        sub, invoice = billed
        fail_advance_commits(repo)
        pay(repo, advancer, invoice.id)
        repo.before_commit[:] = [lambda: setattr(sub, "version", sub.version + 1)]
        (advance,) = repo.advances.values()

        with pytest.raises(ConcurrentUpdateError):
            advancer.apply(advance.id)
