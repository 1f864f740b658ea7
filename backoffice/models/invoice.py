# models/invoice.py
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Enum, Numeric, Boolean, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id
import enum


class InvoiceStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    OVERDUE = "OVERDUE"
    PAID = "PAID"


class Invoice(db.Model):
    __tablename__ = 'invoices'
    id = Column(String(32), primary_key=True, default=new_id)
    customer_id = Column(String(32), ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False)
    subscription_id = Column(String(32), ForeignKey('subscriptions.id', ondelete='SET NULL'), nullable=True)  # null => manual
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.UNPAID, index=True)
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)
    is_manual = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship('Customer')
    subscription = relationship('Subscription')

    __table_args__ = (
        Index('ix_invoices_subscription_period_start', 'subscription_id', 'period_start'),
        Index('ix_invoices_customer_period_start', 'customer_id', 'period_start'),
        Index('ix_invoices_status_due_date', 'status', 'due_date'),
    )

    def __repr__(self):
        return f"<Invoice id={self.id} status={self.status} period={self.period_start}..{self.period_end}>"
