import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from services.errors import ConflictError, RetriesExhaustedError, TransientStorageConflictError
from services.retry import run_with_retries
from services.uow import is_transient_storage_error


class Flaky:
    def __init__(self, failures, exc_factory=lambda: TransientStorageConflictError("write conflict")):
        self.failures = failures
        self.exc_factory = exc_factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_factory()
        return "done"


def test_transient_failure_is_retried_until_success():
    sleeps = []
    op = Flaky(failures=2)

    assert run_with_retries(op, "failed", max_attempts=3, backoff_seconds=0.1, sleep=sleeps.append) == "done"
    assert op.calls == 3
    assert sleeps == pytest.approx([0.1, 0.2])


def test_exhausted_retries_raise_generic_error():
    sleeps = []
    op = Flaky(failures=10)

    with pytest.raises(RetriesExhaustedError) as info:
        run_with_retries(op, "Failed to confirm payment", max_attempts=3, sleep=sleeps.append)

    assert info.value.message == "Failed to confirm payment"
    assert isinstance(info.value.__cause__, TransientStorageConflictError)
    assert op.calls == 3
    assert len(sleeps) == 2


def test_conflict_is_final_and_never_retried():
    sleeps = []
    op = Flaky(failures=1, exc_factory=ConflictError)

    with pytest.raises(ConflictError):
        run_with_retries(op, "failed", sleep=sleeps.append)

    assert op.calls == 1
    assert sleeps == []


def test_custom_predicate_decides_what_is_transient():
    op = Flaky(failures=1, exc_factory=lambda: TimeoutError("slow"))

    result = run_with_retries(
        op, "failed", is_transient=lambda exc: isinstance(exc, TimeoutError), sleep=lambda s: None
    )
    assert result == "done"


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("could not serialize access")
        self.pgcode = pgcode


@pytest.mark.parametrize(
    "exc, expected",
    [
        (OperationalError("INSERT", {}, Exception("database is locked")), True),
        (OperationalError("INSERT", {}, _PgError("40001")), True),
        (OperationalError("INSERT", {}, _PgError("40P01")), True),
        (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), False),
        (OperationalError("INSERT", {}, Exception("no such table: bookings")), False),
        (TransientStorageConflictError(), True),
        (ValueError("boom"), False),
    ],
)
def test_storage_error_classification(exc, expected):
    assert is_transient_storage_error(exc) is expected
