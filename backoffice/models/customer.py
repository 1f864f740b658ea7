# models/customer.py
from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.sql import func
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id
import enum


class CustomerStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    LEFT = "LEFT"


class Customer(db.Model):
    __tablename__ = 'customers'
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=True)
    contact_phone = Column(String(64), nullable=True)
    store_id = Column(String(64), nullable=True, unique=True, index=True)   # used to dedupe imports
    bank_name = Column(String(128), nullable=True)
    status = Column(Enum(CustomerStatus), nullable=False, default=CustomerStatus.ACTIVE, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer id={self.id} name={self.name!r} status={self.status}>"
