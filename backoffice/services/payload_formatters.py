# backoffice/services/payload_formatters.py
from typing import Any, Dict, Optional


def _iso(val: Any) -> Optional[str]:
    return val.isoformat() if val else None


def _value(enum_or_str: Any) -> Any:
    return getattr(enum_or_str, "value", enum_or_str)


def format_invoice(inv: Any) -> Dict[str, Any]:
    return {
        "id": inv.id,
        "customerId": inv.customer_id,
        "subscriptionId": inv.subscription_id,
        "amount": str(inv.amount),
        "dueDate": _iso(inv.due_date),
        "status": _value(inv.status),
        "periodStart": _iso(inv.period_start),
        "periodEnd": _iso(inv.period_end),
        "isManual": bool(inv.is_manual),
        "notes": inv.notes or "",
    }


def format_subscription(sub: Any) -> Dict[str, Any]:
    return {
        "id": sub.id,
        "customerId": sub.customer_id,
        "planId": sub.plan_id,
        "customPrice": str(sub.custom_price) if sub.custom_price is not None else None,
        "billingDay": sub.billing_day,
        "status": _value(sub.status),
        "nextBillingDate": _iso(sub.next_billing_date),
    }
