"""
Shared fixtures.

Engine tests run against ``InMemoryBillingRepository``. API and CLI tests
build the real app on an in-memory SQLite database and pin the billing
clock to a fixed day.
"""
from datetime import date
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from backoffice import create_app
from backoffice.config import TestConfig
from backoffice.extension.extensions import db
from backoffice.models import (
    BillingCycle, Customer, CustomerStatus, Invoice, InvoiceStatus, Plan, Subscription, SubscriptionStatus,
)
from backoffice.services import clock
from tests.fakes import InMemoryBillingRepository

TODAY = date(2025, 11, 9)   # a Sunday


@pytest.fixture
def repo():
    return InMemoryBillingRepository()


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(clock, "billing_today", lambda tz_name="UTC": TODAY)
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    with app.app_context():
        token = create_access_token(identity="staff-1")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed(app):
    """Insert rows through the ORM and hand back their ids."""

    class Seeder:

        def customer(self, status=CustomerStatus.ACTIVE, **fields):
            return self._add(Customer(name=fields.pop("name", "Acme Store"), status=status, **fields))

        def plan(self, billing_cycle=BillingCycle.WEEKLY, base_price="100.00", **fields):
            return self._add(Plan(name=fields.pop("name", "Standard"), billing_cycle=billing_cycle,
                                  base_price=Decimal(base_price), **fields))

        def subscription(self, customer_id, plan_id, next_billing_date, billing_day="MONDAY",
                         status=SubscriptionStatus.ACTIVE, **fields):
            return self._add(Subscription(customer_id=customer_id, plan_id=plan_id, billing_day=billing_day,
                                          status=status, next_billing_date=next_billing_date, **fields))

        def invoice(self, customer_id, due_date, amount="100.00", status=InvoiceStatus.UNPAID, **fields):
            return self._add(Invoice(customer_id=customer_id, due_date=due_date, amount=Decimal(amount),
                                     status=status, **fields))

        def _add(self, row):
            with app.app_context():
                db.session.add(row)
                db.session.commit()
                return row.id

    return Seeder()
