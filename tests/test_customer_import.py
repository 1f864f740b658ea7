from backoffice.models.activityLog import ActivityAction
from backoffice.models.customer import CustomerStatus
from backoffice.services.customer_import import import_customers


def record(name, store_id, **extra):
    return dict({"name": name, "storeId": store_id, "contactPerson": "Dana",
                 "contactPhone": "555-0100", "bankName": "First Bank"}, **extra)


class TestImportCustomers:

    def test_imports_records(self, repo):
        result = import_customers(repo, [record("Corner Shop", "S-1"), record("Kiosk", "S-2", status="pending")])

        assert result.imported == 2
        assert result.skipped == []
        by_store = {c.store_id: c for c in repo.customers.values()}
        assert by_store["S-1"].contact_person == "Dana"
        assert by_store["S-1"].status == CustomerStatus.ACTIVE
        assert by_store["S-2"].status == CustomerStatus.PENDING

    def test_skips_store_ids_already_in_database(self, repo):
        repo.seed_customer(store_id="S-1")

        result = import_customers(repo, [record("Corner Shop", "S-1"), record("Kiosk", "S-2")])

        assert result.imported == 1
        assert result.skipped == [{"name": "Corner Shop", "storeId": "S-1", "reason": "Duplicate storeId"}]

    def test_skips_duplicates_within_file(self, repo):
        result = import_customers(repo, [record("A", "S-9"), record("B", "S-9")])
        assert result.imported == 1
        assert len(result.skipped) == 1

    def test_records_without_store_id_are_all_imported(self, repo):
        result = import_customers(repo, [record("A", ""), record("B", None)])
        assert result.imported == 2
        assert all(c.store_id is None for c in repo.customers.values())

    def test_unknown_status_defaults_to_active(self, repo):
        import_customers(repo, [record("A", "S-1", status="gone fishing")])
        (customer,) = repo.customers.values()
        assert customer.status == CustomerStatus.ACTIVE

    def test_commits_in_chunks(self, repo):
        records = [record(f"Shop {i}", f"S-{i}") for i in range(5)]

        result = import_customers(repo, records, batch_size=2)

        assert result.imported == 5
        # three customer chunks plus the audit entry
        assert repo.commits == 4

    def test_import_is_audited(self, repo):
        import_customers(repo, [record("A", "S-1"), record("B", "S-1")], user_id="staff-1")
        entry = repo.activities[-1]
        assert entry["action"] == ActivityAction.IMPORT_CUSTOMERS
        assert entry["details"] == {"imported": 1, "skipped": 1}
        assert entry["user_id"] == "staff-1"
