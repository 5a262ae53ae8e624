"""
Main entry point for the transaction batch importer.

Commands:
    run       Import every ready file from the remote store
    validate  Validate a local CSV file without importing it
    serve     Start the HTTP API
"""
import argparse
import sys
from pathlib import Path

# Add project root to Python path for module imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
from pydantic import ValidationError as SettingsValidationError

_env_file = PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from core.config import get_settings
from core.exceptions import ConfigurationError, RemoteConnectionError
from core.logger import setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Transaction batch importer")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="import ready files from the remote store")
    run_parser.add_argument("--no-email", action="store_true", help="do not send notifications")
    run_parser.add_argument(
        "--stop-on-first-failure",
        action="store_true",
        default=None,
        help="stop the run after the first failed file",
    )

    validate_parser = subparsers.add_parser("validate", help="validate a local CSV file")
    validate_parser.add_argument("file")

    subparsers.add_parser("serve", help="start the HTTP API")
    return parser


def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    command = args.command or "run"

    try:
        settings = get_settings()
        logger.info(f"Starting {settings.app_name} ({command})")

        if command == "validate":
            from services import build_importer

            outcome = build_importer(settings).import_file(args.file, validation_only=True)
            print(outcome.summary())
            return 0 if outcome.ok else 2

        if command == "serve":
            import uvicorn
            from app.api import app

            logger.info(f"Starting server on {settings.host}:{settings.port}")
            uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
            return 0

        from services import build_orchestrator

        logger.info(f"Remote backend: {settings.remote_backend}, CSV dir: {settings.remote_csv_dir}")
        report = build_orchestrator(settings).run(
            send_email=not getattr(args, "no_email", False),
            stop_on_first_failure=getattr(args, "stop_on_first_failure", None),
        )
        return 0 if not report.failed else 2

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        if e.details:
            logger.error(f"Details: {e.details}")
        return 1

    except SettingsValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    except RemoteConnectionError as e:
        logger.error(f"Remote store unavailable: {e.message}")
        return 1

    except Exception as e:
        logger.error(f"Import run failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
