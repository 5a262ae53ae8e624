"""
Batch orchestration.

Discovers ready transaction files on the remote store, imports them one at a
time, deletes or quarantines each file depending on its outcome and reports
the run to operators.
"""
import posixpath
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from core.config import Settings, get_settings
from core.exceptions import RemoteStoreError, RunInProgressError
from core.logger import setup_logger
from core.schema import FileDisposition, FileResult, ImportOutcome, RunReport
from services.import_service import FileImporter
from services.notifier import Notifier
from transport.base import RemoteFileStore

logger = setup_logger(__name__)

CSV_SUFFIX = ".csv"
SENTINEL_SUFFIX = ".start"

SUCCESS_SUBJECT = "Successful Import"
FAILURE_SUBJECT = "Import CSV failed"

# One run per process may work on the remote directory at a time
_run_lock = threading.Lock()


def find_eligible_files(names: Iterable[str]) -> List[str]:
    """
    Select the files that are ready for import.

    A file is ready when its name ends in .csv and a sentinel named
    <file>.start exists next to it.

    Args:
        names: Entry names of the remote directory

    Returns:
        Sorted list of ready file names
    """
    available = set(names)
    return sorted(
        name for name in available
        if name.endswith(CSV_SUFFIX) and name + SENTINEL_SUFFIX in available
    )


class BatchOrchestrator:
    """Runs one import pass over the remote CSV directory."""

    def __init__(
        self,
        importer: FileImporter,
        store_factory: Callable[[], RemoteFileStore],
        notifier: Notifier,
        settings: Optional[Settings] = None,
    ):
        self.importer = importer
        self.store_factory = store_factory
        self.notifier = notifier
        self.settings = settings or get_settings()
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Request the run to stop before the next file."""
        self._cancel_event.set()

    def run(self, send_email: bool = True, stop_on_first_failure: Optional[bool] = None) -> RunReport:
        """
        Import every ready file on the remote store.

        Args:
            send_email: Send the aggregated success/failure notifications
            stop_on_first_failure: Stop after the first failed file
                (defaults to STOP_ON_FIRST_FAILURE)

        Returns:
            RunReport for the run

        Raises:
            RunInProgressError: If another run is active in this process
            RemoteConnectionError: If the remote store cannot be reached
        """
        if stop_on_first_failure is None:
            stop_on_first_failure = self.settings.stop_on_first_failure

        if not _run_lock.acquire(blocking=False):
            raise RunInProgressError("An import run is already in progress")
        try:
            report = self._run_locked(stop_on_first_failure)
        finally:
            _run_lock.release()
            self._cancel_event.clear()

        logger.info(
            f"Run finished: {len(report.succeeded)} succeeded, {len(report.failed)} failed"
        )

        if send_email:
            self.send_notifications(report)

        return report

    def _run_locked(self, stop_on_first_failure: bool) -> RunReport:
        self.settings.ensure_directories()
        report = RunReport()

        with self.store_factory() as store:
            entries = store.list(self.settings.remote_csv_dir)
            eligible = find_eligible_files(entries)
            logger.info(f"Found {len(eligible)} file(s) ready for import in {self.settings.remote_csv_dir}")

            for name in eligible:
                if self._cancel_event.is_set():
                    logger.warning(f"Run cancelled before {name}")
                    report.cancelled = True
                    break

                result = self.process_remote_file(store, name)
                report.record(result)

                if result.disposition == FileDisposition.FAILED and stop_on_first_failure:
                    logger.warning(f"Stopping run after failed file {name}")
                    report.stopped_early = True
                    break

        return report

    def process_remote_file(self, store: RemoteFileStore, name: str) -> FileResult:
        """
        Download, import and dispose of one remote file.

        Args:
            store: Open remote store
            name: File name in the remote CSV directory

        Returns:
            FileResult for the file
        """
        remote_path = posixpath.join(self.settings.remote_csv_dir, name)
        sentinel_path = remote_path + SENTINEL_SUFFIX
        local_path = str(Path(self.settings.download_dir) / name)
        defer_sentinel = self.settings.sentinel_policy == "after_disposition"

        try:
            store.download(remote_path, local_path)
            if not defer_sentinel:
                store.remove(sentinel_path)
            outcome = self.importer.import_file(local_path)
        except (RemoteStoreError, OSError) as e:
            logger.error(f"Failed to fetch {name}: {e}")
            outcome = ImportOutcome(errors=[str(e)])

        if outcome.ok:
            Path(local_path).unlink(missing_ok=True)
            result = FileResult(file=name, disposition=FileDisposition.SUCCEEDED, detail=outcome.summary())
            disposed = True
        else:
            error_content = f"Import of the file {name} failed with errors:\n{outcome.summary()}"
            try:
                error_path = self.write_error_report(name, error_content)
            except OSError as e:
                logger.error(f"Failed to write error report for {name}: {e}")
                error_path = None
                disposed = False
            else:
                disposed = self.upload_error_report(store, name, error_path)
            result = FileResult(
                file=name,
                disposition=FileDisposition.FAILED,
                detail=error_content,
                error_report_path=error_path,
            )

        if defer_sentinel and disposed:
            try:
                store.remove(sentinel_path)
            except RemoteStoreError as e:
                logger.error(f"Failed to remove sentinel for {name}: {e}")

        return result

    def write_error_report(self, name: str, content: str) -> str:
        upload_dir = Path(self.settings.upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)
        error_file = upload_dir / name
        error_file.write_text(content, encoding="utf-8")
        return str(error_file)

    def upload_error_report(self, store: RemoteFileStore, name: str, error_path: str) -> bool:
        """Upload an error report to the quarantine directory. Returns False on failure."""
        quarantine_path = posixpath.join(self.settings.remote_quarantine_dir, name)
        try:
            store.upload(error_path, quarantine_path)
        except RemoteStoreError as e:
            logger.error(f"Failed to quarantine {name}: {e}")
            return False
        logger.info(f"Quarantined {name} to {quarantine_path}")
        return True

    def send_notifications(self, report: RunReport) -> None:
        """Send one email for all successes and one for all failures."""
        if report.succeeded:
            body = "\n".join(f"Import of the file {r.file} done." for r in report.succeeded)
            self.notifier.notify(SUCCESS_SUBJECT, body)

        if report.failed:
            body = "\n\n".join(r.detail for r in report.failed)
            self.notifier.notify(FAILURE_SUBJECT, body)
