# backoffice/services/state_machine.py
from backoffice.models.invoice import InvoiceStatus
from backoffice.models.subscription import SubscriptionStatus
from backoffice.services.errors import InvalidTransitionError

INVOICE_TRANSITIONS = {
    InvoiceStatus.UNPAID: {InvoiceStatus.OVERDUE, InvoiceStatus.PAID},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID},
    InvoiceStatus.PAID: set(),
}

# Operator-driven moves. The engine itself only ever does TRIAL -> ACTIVE.
SUBSCRIPTION_TRANSITIONS = {
    SubscriptionStatus.TRIAL: {SubscriptionStatus.ACTIVE, SubscriptionStatus.SUSPENDED, SubscriptionStatus.CANCELED},
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.SUSPENDED, SubscriptionStatus.CANCELED},
    SubscriptionStatus.SUSPENDED: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.CANCELED: {SubscriptionStatus.ACTIVE},
}

OPERATOR_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.SUSPENDED, SubscriptionStatus.CANCELED)
BILLABLE_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL)


def check_invoice_transition(current, target):
    # re-applying the same status is a no-op (repeated payment recording re-sets PAID)
    if current == target:
        return
    if target not in INVOICE_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Invoice cannot move from {_name(current)} to {_name(target)}")


def check_subscription_transition(current, target):
    if current == target:
        return
    if target not in SUBSCRIPTION_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Subscription cannot move from {_name(current)} to {_name(target)}")


def activation_update(subscription):
    """Status change that goes with a successful billing step."""
    if subscription.status == SubscriptionStatus.TRIAL:
        return {"status": SubscriptionStatus.ACTIVE}
    return {}


def forward_only(current, proposed):
    """The later of two billing dates; engine writes never move the cursor back."""
    if current is None:
        return proposed
    return proposed if proposed > current else current


def _name(status):
    return getattr(status, "value", status)
