# models/subscriptionAdvance.py
from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id
import enum


class AdvanceStatus(str, enum.Enum):
    PENDING = "PENDING"
    DONE = "DONE"


class SubscriptionAdvance(db.Model):
    """
    Outbox row written together with a payment. It stays PENDING until the
    owning subscription's next billing date has been moved past the paid period.
    """
    __tablename__ = 'subscription_advances'
    id = Column(String(32), primary_key=True, default=new_id)
    subscription_id = Column(String(32), ForeignKey('subscriptions.id', ondelete='CASCADE'), nullable=False, index=True)
    invoice_id = Column(String(32), ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False)
    period_end = Column(Date, nullable=False)
    status = Column(Enum(AdvanceStatus), nullable=False, default=AdvanceStatus.PENDING, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    subscription = relationship('Subscription')
    invoice = relationship('Invoice')
