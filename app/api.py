"""
FastAPI routes for operating the importer.
Validation-only uploads and background import runs with status polling.
"""
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from fastapi import BackgroundTasks, Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.responses import Response

from core.config import get_settings
from core.exceptions import RemoteConnectionError, RunInProgressError
from core.logger import setup_logger
from services import build_importer, build_orchestrator
from services.import_service import FileImporter
from services.orchestrator import BatchOrchestrator

logger = setup_logger(__name__)

app = FastAPI(
    title="Transaction Batch Importer",
    description="Import semicolon separated banking transaction files",
    version="1.0.0"
)

# In-memory job storage
jobs: Dict[str, Dict[str, Any]] = {}
ACTIVE_STATUSES = ("queued", "processing")


def get_importer() -> FileImporter:
    return build_importer(get_settings())


def get_orchestrator() -> BatchOrchestrator:
    return build_orchestrator(get_settings())


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "batch_importer",
        "version": "1.0.0"
    }


@app.get("/favicon.ico")
async def favicon():
    """Return empty response for favicon to avoid 404 errors."""
    return Response(status_code=204)


def validate_file_extension(filename: str) -> None:
    """
    Validate file has correct extension.

    Raises:
        HTTPException: If file extension is invalid
    """
    if not filename or not filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {filename}. Only .csv is supported."
        )


@app.post("/validate")
def validate_upload(
    file: UploadFile = File(...),
    importer: FileImporter = Depends(get_importer),
):
    """
    Run a validation-only import of an uploaded file.

    Nothing is written to the ledger and no debit batch is produced.
    """
    validate_file_extension(file.filename)

    settings = get_settings()
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    upload_path = upload_dir / f"{uuid.uuid4()}_{Path(file.filename).name}"

    try:
        with open(upload_path, "wb") as f:
            f.write(file.file.read())

        outcome = importer.import_file(str(upload_path), validation_only=True)
        return {
            "filename": file.filename,
            "valid": outcome.ok,
            "summary": outcome.summary(),
            "success": outcome.success,
            "errors": outcome.errors,
        }
    finally:
        if upload_path.exists():
            upload_path.unlink()


def run_import_background(job_id: str, orchestrator: BatchOrchestrator, send_email: bool) -> None:
    """
    Background task running one orchestrator pass.

    Args:
        job_id: Unique job identifier
        orchestrator: Configured orchestrator
        send_email: Send run notifications
    """
    jobs[job_id]["status"] = "processing"
    try:
        report = orchestrator.run(send_email=send_email)
        jobs[job_id]["status"] = "completed"
        jobs[job_id]["result"] = report.model_dump(mode="json")
        logger.info(f"Job {job_id} completed")

    except RunInProgressError as e:
        logger.warning(f"Job {job_id} not started: {e}")
        jobs[job_id]["status"] = "failed"
        jobs[job_id]["error"] = e.message

    except RemoteConnectionError as e:
        logger.error(f"Job {job_id} could not reach the file store: {e}")
        jobs[job_id]["status"] = "failed"
        jobs[job_id]["error"] = e.message
        jobs[job_id]["error_details"] = e.details

    except Exception as e:
        logger.error(f"Job {job_id} failed with unexpected error: {e}", exc_info=True)
        jobs[job_id]["status"] = "failed"
        jobs[job_id]["error"] = str(e)


@app.post("/runs", status_code=202)
async def start_run(
    background_tasks: BackgroundTasks,
    send_email: bool = True,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Start an import run in the background and return its job id."""
    active = [job["job_id"] for job in jobs.values() if job["status"] in ACTIVE_STATUSES]
    if active:
        raise HTTPException(status_code=409, detail=f"Import run {active[0]} is still in progress")

    job_id = str(uuid.uuid4())
    jobs[job_id] = {
        "job_id": job_id,
        "status": "queued",
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    background_tasks.add_task(run_import_background, job_id, orchestrator, send_email)
    logger.info(f"Job {job_id} queued")

    return {"job_id": job_id, "status": "accepted"}


@app.get("/runs/{job_id}")
async def get_run_status(job_id: str):
    """Get status of an import run."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")

    job = jobs[job_id]
    response = {
        "job_id": job_id,
        "status": job["status"],
        "created_at": job.get("created_at"),
    }
    if job["status"] == "completed":
        response["result"] = job.get("result")
    if job["status"] == "failed":
        response["error"] = job.get("error")
        if "error_details" in job:
            response["error_details"] = job["error_details"]
    return response
