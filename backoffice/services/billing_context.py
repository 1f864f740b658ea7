# backoffice/services/billing_context.py
"""Wires engine services to the running app's config and database session."""
from flask import current_app

from backoffice.repositories.sqlalchemy_repository import get_repository
from backoffice.services import clock
from backoffice.services.billing_cycle import ROLLOVER
from backoffice.services.invoice_generator import InvoiceGenerator
from backoffice.services.subscription_advancer import SubscriptionAdvancer


def today():
    return clock.billing_today(current_app.config.get("BILLING_TIMEZONE", "UTC"))


def monthly_overflow():
    return current_app.config.get("MONTHLY_DAY_OVERFLOW", ROLLOVER)


def build_advancer(repository=None):
    return SubscriptionAdvancer(repository or get_repository(), overflow=monthly_overflow())


def build_generator(repository=None):
    repository = repository or get_repository()
    return InvoiceGenerator(repository, overflow=monthly_overflow(), advancer=build_advancer(repository))
