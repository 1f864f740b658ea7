# backoffice/repositories/billing_repository.py
"""
Data access contract for the billing engine.

The engine never reaches for a global session. It reads through a
``BillingRepository`` and hands every write it wants to make to
``commit_batch`` as one ``BillingBatch``, which the repository applies
atomically or not at all.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from backoffice.models.ids import new_id
from backoffice.models.invoice import InvoiceStatus
from backoffice.models.subscriptionAdvance import AdvanceStatus


@dataclass
class SubscriptionUpdate:
    subscription_id: str
    expected_version: int
    values: Dict[str, Any]


@dataclass
class BillingBatch:
    """Writes staged during one engine operation."""
    customers: List[Dict[str, Any]] = field(default_factory=list)
    subscriptions: List[Dict[str, Any]] = field(default_factory=list)
    invoices: List[Dict[str, Any]] = field(default_factory=list)
    invoice_updates: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    subscription_updates: List[SubscriptionUpdate] = field(default_factory=list)
    payments: List[Dict[str, Any]] = field(default_factory=list)
    advances: List[Dict[str, Any]] = field(default_factory=list)
    completed_advances: List[str] = field(default_factory=list)
    activities: List[Dict[str, Any]] = field(default_factory=list)

    def add_customer(self, **values):
        values.setdefault("id", new_id())
        self.customers.append(values)
        return values["id"]

    def add_subscription(self, **values):
        values.setdefault("id", new_id())
        values.setdefault("version", 1)
        self.subscriptions.append(values)
        return values["id"]

    def add_invoice(self, **values):
        values.setdefault("id", new_id())
        values.setdefault("status", InvoiceStatus.UNPAID)
        self.invoices.append(values)
        return values["id"]

    def set_invoice_status(self, invoice_id, status):
        self.invoice_updates.setdefault(invoice_id, {})["status"] = status

    def update_subscription(self, subscription, **values):
        """Stage a write guarded by the version the caller read."""
        self.subscription_updates.append(
            SubscriptionUpdate(subscription.id, subscription.version, values)
        )

    def add_payment(self, **values):
        values.setdefault("id", new_id())
        self.payments.append(values)
        return values["id"]

    def add_advance(self, **values):
        values.setdefault("id", new_id())
        values.setdefault("status", AdvanceStatus.PENDING)
        values.setdefault("attempts", 0)
        self.advances.append(values)
        return values["id"]

    def complete_advance(self, advance_id):
        self.completed_advances.append(advance_id)

    def log_activity(self, action, details=None, user_id=None):
        self.activities.append({
            "id": new_id(),
            "action": action,
            "details": details or {},
            "user_id": user_id,
        })

    def merge(self, other):
        self.customers.extend(other.customers)
        self.subscriptions.extend(other.subscriptions)
        self.invoices.extend(other.invoices)
        for invoice_id, values in other.invoice_updates.items():
            self.invoice_updates.setdefault(invoice_id, {}).update(values)
        self.subscription_updates.extend(other.subscription_updates)
        self.payments.extend(other.payments)
        self.advances.extend(other.advances)
        self.completed_advances.extend(other.completed_advances)
        self.activities.extend(other.activities)

    def is_empty(self):
        return not any((
            self.customers, self.subscriptions, self.invoices, self.invoice_updates,
            self.subscription_updates, self.payments, self.advances,
            self.completed_advances, self.activities,
        ))


class BillingRepository(ABC):

    @abstractmethod
    def get_subscriptions_due_for_billing(self, cutoff) -> List[Any]:
        """ACTIVE or TRIAL subscriptions whose next billing date is on or before ``cutoff``."""

    @abstractmethod
    def get_subscription(self, subscription_id) -> Optional[Any]:
        pass

    @abstractmethod
    def get_subscriptions_for_customer(self, customer_id) -> List[Any]:
        pass

    @abstractmethod
    def get_customer(self, customer_id) -> Optional[Any]:
        pass

    @abstractmethod
    def get_customer_store_ids(self) -> set:
        pass

    @abstractmethod
    def get_plan(self, plan_id) -> Optional[Any]:
        pass

    @abstractmethod
    def get_invoice(self, invoice_id) -> Optional[Any]:
        pass

    @abstractmethod
    def get_invoices_for_customer(self, customer_id) -> List[Any]:
        pass

    @abstractmethod
    def get_paid_invoices_for_customer_in_window(self, customer_id, start, end) -> List[Any]:
        """PAID invoices of the customer with both period bounds set that may overlap ``[start, end]``."""

    @abstractmethod
    def get_invoice_for_subscription_by_period_start(self, subscription_id, period_start) -> Optional[Any]:
        pass

    @abstractmethod
    def has_payment_for_invoice(self, invoice_id) -> bool:
        pass

    @abstractmethod
    def get_unpaid_invoices_due_before(self, day) -> List[Any]:
        pass

    @abstractmethod
    def get_advance(self, advance_id) -> Optional[Any]:
        pass

    @abstractmethod
    def get_pending_advances(self) -> List[Any]:
        pass

    @abstractmethod
    def record_advance_failure(self, advance_id, error) -> None:
        pass

    @abstractmethod
    def commit_batch(self, batch: BillingBatch) -> None:
        """Apply every staged write or none. Raises ConcurrentUpdateError on a stale version."""

    def discard(self) -> None:
        """Drop uncommitted read state after a failed read. Staged batches are unaffected."""
