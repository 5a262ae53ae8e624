"""
Unit tests for the row processor retry envelope.
"""
import pytest

from conftest import debit_row, make_row
from core.exporters import DebitBatchWriter
from core.schema import TransactionKind
from services.handlers import TransactionHandlers
from services.row_processor import RowProcessor


class FlakyHandlers:
    """Raises for the first `failures` dispatches, then succeeds."""

    def __init__(self, inner, failures):
        self.inner = inner
        self.failures = failures
        self.calls = 0

    def dispatch(self, txn, validation_only=False):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("ledger timeout")
        return self.inner.dispatch(txn, validation_only)


@pytest.fixture
def handlers(ledger, settings):
    return TransactionHandlers(ledger, DebitBatchWriter(settings))


def test_successful_row_uses_one_attempt(handlers):
    processor = RowProcessor(handlers)
    outcome = processor.process_row(make_row(ACTIVITY_ID="1"))

    assert outcome.ok
    assert outcome.kind == TransactionKind.ACCOUNT_TRANSFER
    assert outcome.attempts == 1
    assert processor.last_attempt_count == 1


def test_fault_stops_after_first_attempt(handlers):
    """The ceiling of 5 is never reached: the first fault ends the loop."""
    flaky = FlakyHandlers(handlers, failures=10)
    processor = RowProcessor(flaky, max_attempts=5)

    outcome = processor.process_row(make_row(ACTIVITY_ID="1"))

    assert outcome.errors == ["1: ledger timeout"]
    assert outcome.attempts == 1
    assert processor.last_attempt_count == 1
    assert flaky.calls == 1


def test_fault_from_bad_amount_is_recorded(handlers):
    processor = RowProcessor(handlers)
    outcome = processor.process_row(make_row(ACTIVITY_ID="1", AMOUNT="abc"))
    assert outcome.errors == ["1: Amount abc is not a number"]


def test_retry_faults_retries_until_success(handlers, ledger):
    flaky = FlakyHandlers(handlers, failures=2)
    processor = RowProcessor(flaky, max_attempts=5, retry_faults=True, retry_wait=0)

    outcome = processor.process_row(make_row(ACTIVITY_ID="1"))

    assert outcome.ok
    assert outcome.attempts == 3
    assert len(ledger.saved) == 1


def test_retry_faults_gives_up_at_ceiling(handlers):
    flaky = FlakyHandlers(handlers, failures=10)
    processor = RowProcessor(flaky, max_attempts=3, retry_faults=True, retry_wait=0)

    outcome = processor.process_row(make_row(ACTIVITY_ID="1"))

    assert outcome.errors == ["1: ledger timeout"]
    assert outcome.attempts == 3
    assert flaky.calls == 3


def test_handler_errors_are_not_retried(handlers):
    processor = RowProcessor(handlers, retry_faults=True, retry_wait=0)
    outcome = processor.process_row(make_row(ACTIVITY_ID="1", SENDER_KONTO="999"))

    assert outcome.errors == ["1: Account 999 not found"]
    assert outcome.attempts == 1


def test_unclassified_row_error(handlers):
    processor = RowProcessor(handlers)
    outcome = processor.process_row(make_row(ACTIVITY_ID="1", SENDER_BLZ="37040044"))

    assert outcome.kind == TransactionKind.UNCLASSIFIED
    assert outcome.errors == ["1: Transaction type not found"]


def test_debit_entry_returned(handlers):
    outcome = RowProcessor(handlers).process_row(debit_row(ACTIVITY_ID="1"))
    assert outcome.ok
    assert outcome.debit_entry.holder == "Jurgen Muller"
