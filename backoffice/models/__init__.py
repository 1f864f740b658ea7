# backoffice/models/__init__.py

# Import models in dependency order so string relationships resolve
from .customer import Customer, CustomerStatus
from .plan import Plan, BillingCycle
from .subscription import Subscription, SubscriptionStatus
from .invoice import Invoice, InvoiceStatus
from .payment import Payment
from .activityLog import ActivityLog, ActivityAction
from .subscriptionAdvance import SubscriptionAdvance, AdvanceStatus


__all__ = [
    'Customer', 'CustomerStatus', 'Plan', 'BillingCycle', 'Subscription', 'SubscriptionStatus',
    'Invoice', 'InvoiceStatus', 'Payment', 'ActivityLog', 'ActivityAction',
    'SubscriptionAdvance', 'AdvanceStatus',
]
