"""Tests for the facade's transient-conflict retry and error wrapping."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory_kernel.exceptions import (
    ConcurrencyError,
    InsufficientStockError,
    OptimisticLockError,
    StorageError,
)
from inventory_kernel.services.inventory_service import InventoryService, is_transient


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


def _operational(orig: Exception) -> OperationalError:
    return OperationalError("UPDATE products ...", {}, orig)


class Flaky:
    """Callable failing with ``errors`` in order, then returning ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self, session):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class TestIsTransient:
    @pytest.mark.parametrize("code", ["40001", "40P01", "55P03"])
    def test_postgres_conflicts(self, code):
        assert is_transient(_operational(_PgError(code)))

    def test_sqlite_locked(self):
        assert is_transient(_operational(Exception("database is locked")))

    def test_optimistic_lock(self):
        assert is_transient(OptimisticLockError(1, expected_stock=3))

    def test_other_errors(self):
        assert not is_transient(_operational(Exception("disk I/O error")))
        assert not is_transient(IntegrityError("INSERT", {}, Exception("unique")))
        assert not is_transient(ValueError("x"))


class TestRun:
    @pytest.fixture
    def service(self, database, clock):
        return InventoryService(database, clock=clock, max_retries=3, backoff_seconds=0)

    def test_retries_then_succeeds(self, service, captured_logs):
        work = Flaky([OptimisticLockError(1, 5), _operational(Exception("database is locked"))])

        assert service._run("apply_bulk", work) == "ok"
        assert work.calls == 3
        retries = [r for r in captured_logs() if r["message"] == "retrying_after_conflict"]
        assert [r["attempt"] for r in retries] == [1, 2]

    def test_exhausted_retries_become_concurrency_error(self, service):
        work = Flaky([OptimisticLockError(1, 5)] * 10)

        with pytest.raises(ConcurrencyError) as exc_info:
            service._run("apply_bulk", work)

        assert work.calls == 4
        assert type(exc_info.value) is ConcurrencyError
        assert exc_info.value.http_status == 409

    def test_non_transient_storage_failure_wrapped(self, service):
        work = Flaky([_operational(Exception("disk I/O error"))])

        with pytest.raises(StorageError) as exc_info:
            service._run("apply_transaction", work)

        assert work.calls == 1
        assert exc_info.value.operation == "apply_transaction"
        assert exc_info.value.http_status == 500

    def test_domain_errors_not_retried(self, service):
        work = Flaky([InsufficientStockError(1, available=0, requested=1)])

        with pytest.raises(InsufficientStockError):
            service._run("apply_transaction", work)

        assert work.calls == 1
