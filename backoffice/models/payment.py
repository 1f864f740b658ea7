# models/payment.py
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id


class Payment(db.Model):
    __tablename__ = 'payments'
    id = Column(String(32), primary_key=True, default=new_id)
    invoice_id = Column(String(32), ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    recorded_by_user_id = Column(String(64), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    invoice = relationship('Invoice')
