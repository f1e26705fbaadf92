"""Command-line entry point for CSV import and export."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .config import get_config, load_config
from .errors import FileRejectedError
from .exporter import export_applications
from .importer import import_csv_file, validate_csv_file
from .models import ImportProgress, ImportResult
from .store import count_applications, init_db, list_applications, save_applications

LOG_DIR = Path(__file__).parent.parent / "logs"


def setup_logging() -> None:
    """Send log records to logs/krisis.log and stdout.

    The level comes from ``log_level`` in the loaded config.
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "krisis.log"

    config = get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def log_progress(progress: ImportProgress) -> None:
    logger = logging.getLogger(__name__)
    logger.info(
        f"{progress.percent}% - {progress.rows_processed} rows processed, "
        f"{progress.errors} errors"
    )


def summarize(result: ImportResult) -> str:
    """One-line summary of an import for the user."""
    status = "succeeded" if result.success else "failed"
    summary = (
        f"Import {status}: {len(result.imported)} imported, "
        f"{len(result.errors)} errors, {result.skipped} skipped"
    )
    if result.aborted:
        summary += " (aborted)"
    return summary


def run_check(path: Path) -> int:
    """Pre-flight checks only."""
    if not path.is_file():
        print(f"{path}: file not found", file=sys.stderr)
        return 1

    size = path.stat().st_size
    valid, error = validate_csv_file(path.name, size)
    if not valid:
        print(f"{path}: {error}", file=sys.stderr)
        return 1
    print(f"{path}: ok ({size} bytes)")
    return 0


def run_import(path: Path) -> int:
    """Import a CSV file and store the valid rows."""
    logger = logging.getLogger(__name__)
    config = get_config()

    try:
        result = asyncio.run(import_csv_file(path, on_progress=log_progress))
    except FileRejectedError as e:
        logger.error(f"Import failed: {e}")
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    for error in result.errors:
        field = f" [{error.field}]" if error.field else ""
        logger.debug(f"Row {error.row}{field}: {error.message} ({error.data!r})")

    if result.success and result.imported:
        init_db(config.db_path)
        save_applications(result.imported, config.owner_id, db_path=config.db_path)

    print(summarize(result))
    return 0 if result.success else 1


def run_export(output_dir: Optional[Path], filename: Optional[str]) -> int:
    """Export stored applications to a CSV file."""
    config = get_config()

    init_db(config.db_path)
    records = list_applications(config.owner_id, db_path=config.db_path)

    path = export_applications(
        records,
        output_dir or config.export_dir,
        filename=filename,
        prefix=config.export_prefix,
    )
    if path is None:
        print("No data to export. Please add some applications first.")
        return 0

    print(f"Exported {len(records)} applications to {path}")
    return 0


def run_stats() -> int:
    config = get_config()
    init_db(config.db_path)
    print(f"{count_applications(config.owner_id, db_path=config.db_path)} applications stored")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="krisis",
        description="Import and export job applications as CSV",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Path to config YAML (default: config/config.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Check that a file can be imported")
    check.add_argument("file", type=Path)

    imp = sub.add_parser("import", help="Import applications from a CSV file")
    imp.add_argument("file", type=Path)

    exp = sub.add_parser("export", help="Export stored applications to CSV")
    exp.add_argument("--output-dir", "-o", type=Path, default=None)
    exp.add_argument("--filename", type=str, default=None)

    sub.add_parser("stats", help="Show how many applications are stored")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point with concurrency protection."""
    args = build_parser().parse_args(argv)

    try:
        load_config(args.config)
        setup_logging()
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logger = logging.getLogger(__name__)

    if args.command == "check":
        return run_check(args.file)

    try:
        with FileLock(get_config().lock_file, timeout=10):
            logger.debug(f"Acquired lock, running {args.command}")
            if args.command == "import":
                return run_import(args.file)
            if args.command == "export":
                return run_export(args.output_dir, args.filename)
            return run_stats()

    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        return 1

    except Exception as e:
        logger.exception(f"Command {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
