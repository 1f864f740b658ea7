from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from backoffice.extension.extensions import db
from backoffice.models import BillingCycle, Invoice, Subscription
from backoffice.repositories.sqlalchemy_repository import SQLAlchemyBillingRepository
from backoffice.services.invoice_generator import InvoiceGenerator

RUN_DAY = date(2025, 11, 9)


class TestGeneratorOnDatabase:

    def test_failed_read_is_rolled_back_and_run_continues(self, app, seed, monkeypatch):
        customer_id = seed.customer()
        broken_plan = seed.plan(BillingCycle.WEEKLY, name="Broken")
        healthy_plan = seed.plan(BillingCycle.WEEKLY, name="Healthy")
        broken = seed.subscription(customer_id, broken_plan, next_billing_date=RUN_DAY)
        healthy = seed.subscription(customer_id, healthy_plan, next_billing_date=RUN_DAY)

        get_plan = SQLAlchemyBillingRepository.get_plan
        discard = SQLAlchemyBillingRepository.discard
        discards = []

        def failing_get_plan(self, plan_id):
            if plan_id == broken_plan:
                self.session.execute(text("SELECT * FROM no_such_table"))
            return get_plan(self, plan_id)

        def counting_discard(self):
            discards.append(1)
            discard(self)

        monkeypatch.setattr(SQLAlchemyBillingRepository, "get_plan", failing_get_plan)
        monkeypatch.setattr(SQLAlchemyBillingRepository, "discard", counting_discard)

        with app.app_context():
            result = InvoiceGenerator(SQLAlchemyBillingRepository()).run(RUN_DAY)

        assert result.failed == 1
        assert result.created == 1
        assert discards == [1]
        with app.app_context():
            assert Invoice.query.filter_by(subscription_id=broken).count() == 0
            assert Invoice.query.filter_by(subscription_id=healthy).count() == 1
            assert db.session.get(Subscription, healthy).next_billing_date == date(2025, 11, 16)
            assert db.session.get(Subscription, broken).next_billing_date == RUN_DAY


class TestDiscard:

    def test_session_usable_after_discard(self, app, seed):
        customer_id = seed.customer()
        with app.app_context():
            repo = SQLAlchemyBillingRepository()
            with pytest.raises(OperationalError):
                repo.session.execute(text("SELECT * FROM no_such_table"))
            repo.discard()
            assert repo.get_customer(customer_id) is not None
