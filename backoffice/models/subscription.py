# models/subscription.py
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum, Numeric, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id
import enum


class SubscriptionStatus(str, enum.Enum):
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    CANCELED = "CANCELED"


class Subscription(db.Model):
    __tablename__ = 'subscriptions'
    id = Column(String(32), primary_key=True, default=new_id)
    customer_id = Column(String(32), ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False, index=True)
    plan_id = Column(String(32), ForeignKey('plans.id', ondelete='RESTRICT'), nullable=False)
    custom_price = Column(Numeric(12, 2), nullable=True)     # overrides plan.base_price
    billing_day = Column(String(16), nullable=False, default='1')   # 'MONDAY'.. for weekly, '1'..'31' for monthly
    status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.ACTIVE, index=True)
    next_billing_date = Column(Date, nullable=False)        # start of the next unbilled period
    version = Column(Integer, nullable=False, default=1)   # bumped on every write, compare-and-swap guard

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship('Customer')
    plan = relationship('Plan')

    __table_args__ = (
        Index('ix_subscriptions_status_next_billing', 'status', 'next_billing_date'),
    )
