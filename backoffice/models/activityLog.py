# models/activityLog.py
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from backoffice.extension.extensions import db
from backoffice.models.ids import new_id


class ActivityAction:
    GENERATE_INVOICES = "GENERATE_INVOICES"
    UPDATE_OVERDUE_INVOICES = "UPDATE_OVERDUE_INVOICES"
    RECORD_PAYMENT = "RECORD_PAYMENT"
    CREATE_MANUAL_INVOICE = "CREATE_MANUAL_INVOICE"
    UPDATE_SUBSCRIPTION_STATUS = "UPDATE_SUBSCRIPTION_STATUS"
    CREATE_SUBSCRIPTION = "CREATE_SUBSCRIPTION"
    CHANGE_SUBSCRIPTION_PLAN = "CHANGE_SUBSCRIPTION_PLAN"
    IMPORT_CUSTOMERS = "IMPORT_CUSTOMERS"


class ActivityLog(db.Model):
    """Append-only audit trail. Nothing in the engine reads it back."""
    __tablename__ = 'activity_log'
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(64), nullable=True)    # null for scheduled jobs
    action = Column(String(64), nullable=False, index=True)
    details = Column(JSON, nullable=False, default={})
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
