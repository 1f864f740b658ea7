from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from backoffice.models.invoice import InvoiceStatus
from backoffice.models.subscription import SubscriptionStatus
from backoffice.services.payload_formatters import format_invoice, format_subscription


class TestFormatters:

    def test_invoice(self):
        inv = SimpleNamespace(id="i1", customer_id="c1", subscription_id=None, amount=Decimal("49.99"),
                              due_date=date(2025, 11, 9), status=InvoiceStatus.UNPAID,
                              period_start=None, period_end=None, is_manual=True, notes=None)
        assert format_invoice(inv) == {
            "id": "i1", "customerId": "c1", "subscriptionId": None, "amount": "49.99",
            "dueDate": "2025-11-09", "status": "UNPAID", "periodStart": None, "periodEnd": None,
            "isManual": True, "notes": "",
        }

    def test_subscription(self):
        sub = SimpleNamespace(id="s1", customer_id="c1", plan_id="p1", custom_price=None, billing_day="MONDAY",
                              status=SubscriptionStatus.TRIAL, next_billing_date=date(2025, 11, 16))
        body = format_subscription(sub)
        assert body["status"] == "TRIAL"
        assert body["customPrice"] is None
        assert body["nextBillingDate"] == "2025-11-16"
