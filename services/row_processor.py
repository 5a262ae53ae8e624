"""
Row processing with a bounded retry envelope.

Classification and dispatch of one row run inside a tenacity retry loop.
By default a fault ends the loop on the first attempt and is recorded as the
row's error; the attempt ceiling only matters when fault retries are enabled.
"""
from typing import Mapping

from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_never,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from core.classify import classify
from core.logger import setup_logger
from core.normalize import safe_get_string
from core.schema import RowOutcome
from services.handlers import TransactionHandlers

logger = setup_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class RowProcessor:
    """Classifies and dispatches single rows."""

    def __init__(
        self,
        handlers: TransactionHandlers,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_faults: bool = False,
        retry_wait: float = 0.5,
    ):
        self.handlers = handlers
        self.max_attempts = max_attempts
        self.retry_faults = retry_faults
        self.retry_wait = retry_wait
        # Attempts used by the most recent process_row call
        self.last_attempt_count = 0

    def _retrying(self) -> Retrying:
        if self.retry_faults:
            return Retrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.retry_wait, max=5),
                retry=retry_if_exception_type(Exception),
                reraise=True,
            )
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_none(),
            retry=retry_never,
            reraise=True,
        )

    def process_row(self, row: Mapping[str, str], validation_only: bool = False) -> RowOutcome:
        """
        Classify and dispatch a validated row.

        Args:
            row: Parsed CSV row
            validation_only: Validate without persisting anything

        Returns:
            RowOutcome with the row's errors, attempt count and debit entry
        """
        activity_id = safe_get_string(row, "ACTIVITY_ID")
        outcome = RowOutcome(activity_id=activity_id)

        try:
            for attempt in self._retrying():
                with attempt:
                    outcome.attempts = attempt.retry_state.attempt_number
                    txn = classify(row)
                    outcome.kind = txn.kind
                    result = self.handlers.dispatch(txn, validation_only)
        except Exception as e:
            logger.warning(f"{activity_id}: processing failed after {outcome.attempts} attempt(s): {e}")
            outcome.errors.append(f"{activity_id}: {e}")
        else:
            outcome.errors.extend(result.errors)
            outcome.debit_entry = result.debit_entry

        self.last_attempt_count = outcome.attempts
        return outcome
