# backoffice/services/customer_import.py
import logging
from dataclasses import dataclass, field

from backoffice.models.activityLog import ActivityAction
from backoffice.models.customer import CustomerStatus
from backoffice.repositories.billing_repository import BillingBatch

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    imported: int = 0
    skipped: list = field(default_factory=list)


def _status(raw):
    if not raw:
        return CustomerStatus.ACTIVE
    try:
        return CustomerStatus(str(raw).strip().upper())
    except ValueError:
        return CustomerStatus.ACTIVE


def _customer_values(record):
    return {
        "name": record.get("name") or "",
        "contact_person": record.get("contactPerson") or "",
        "contact_phone": record.get("contactPhone") or "",
        "store_id": record.get("storeId") or None,
        "bank_name": record.get("bankName") or "",
        "status": _status(record.get("status")),
    }


def import_customers(repository, records, batch_size=500, user_id=None):
    """
    Bulk-create customers from exported records.

    Records whose ``storeId`` already exists, either in the database or earlier
    in the same file, are skipped. Customers are committed in chunks of
    ``batch_size``.
    """
    seen_store_ids = repository.get_customer_store_ids()
    result = ImportResult()
    to_import = []

    for record in records:
        store_id = record.get("storeId")
        if store_id and store_id in seen_store_ids:
            result.skipped.append({"name": record.get("name"), "storeId": store_id, "reason": "Duplicate storeId"})
            continue
        to_import.append(_customer_values(record))
        if store_id:
            seen_store_ids.add(store_id)

    for offset in range(0, len(to_import), batch_size):
        chunk = to_import[offset:offset + batch_size]
        batch = BillingBatch()
        for values in chunk:
            batch.add_customer(**values)
        repository.commit_batch(batch)
        result.imported += len(chunk)
        logger.info("Imported %s/%s customers", result.imported, len(to_import))

    audit = BillingBatch()
    audit.log_activity(ActivityAction.IMPORT_CUSTOMERS,
                       {"imported": result.imported, "skipped": len(result.skipped)},
                       user_id=user_id)
    repository.commit_batch(audit)
    return result
