# models/plan.py
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Enum, CheckConstraint
from sqlalchemy.sql import func
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id
import enum


class BillingCycle(str, enum.Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    TRIAL = "TRIAL"


class Plan(db.Model):
    __tablename__ = 'plans'
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(128), nullable=False)
    base_price = Column(Numeric(12, 2), nullable=False, default=0)
    billing_cycle = Column(Enum(BillingCycle), nullable=False)
    trial_days = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    __table_args__ = (
        CheckConstraint('base_price >= 0', name='ck_plans_base_price_nonneg'),
    )
