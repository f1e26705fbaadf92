"""Streaming CSV import: file checks, row validation and progress events."""

import asyncio
import codecs
import logging
from enum import Enum
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Callable, Optional, Union

from .errors import FileRejectedError
from .models import DataRecord, ImportProgress, ImportResult, RowError
from .normalize import normalize_header
from .tokenizer import CsvTokenizer, ParsedRow
from .validator import validate_row

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB
PROGRESS_INTERVAL = 10  # rows between progress events
CHUNK_SIZE = 64 * 1024

ImportEvent = Union[ImportProgress, ImportResult]
ProgressCallback = Callable[[ImportProgress], None]


class ImportState(str, Enum):
    IDLE = "idle"
    VALIDATING_FILE = "validating_file"
    STREAMING_ROWS = "streaming_rows"
    COMPLETE = "complete"
    FAILED = "failed"


def validate_csv_file(filename: Optional[str], size: int) -> tuple[bool, Optional[str]]:
    """Check an upload before reading it. Returns (valid, error message)."""
    if not filename:
        return False, "No file selected"

    if not filename.lower().endswith(".csv"):
        return False, "File must be a CSV file"

    if size > MAX_FILE_SIZE:
        return False, "File size must be at most 5MB"

    if size <= 0:
        return False, "File is empty"

    return True, None


def check_csv_file(filename: Optional[str], size: int) -> None:
    """Raise FileRejectedError if the upload must not be imported."""
    valid, error = validate_csv_file(filename, size)
    if not valid:
        raise FileRejectedError(error)


class _ImportAccumulator:
    """Mutable state owned by a single import run."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.loaded = 0
        self.rows_processed = 0
        self.skipped = 0
        self.imported: list[DataRecord] = []
        self.errors: list[RowError] = []

    def add(self, record: Optional[DataRecord], errors: list[RowError]) -> None:
        self.rows_processed += 1
        if errors:
            self.errors.extend(errors)
            self.skipped += 1
        elif record is not None:
            self.imported.append(record)

    def snapshot(self) -> ImportProgress:
        return ImportProgress(
            loaded=self.loaded,
            total=self.total,
            rows_processed=self.rows_processed,
            errors=len(self.errors),
        )

    def result(self, aborted: bool = False) -> ImportResult:
        return ImportResult(
            success=not self.errors or len(self.imported) > 0,
            imported=self.imported,
            errors=self.errors,
            skipped=self.skipped,
            progress=self.snapshot(),
            aborted=aborted,
        )


class CsvImport:
    """One import run over one uploaded file.

    ``events()`` is an async generator: it yields an ``ImportProgress`` every
    ``PROGRESS_INTERVAL`` processed rows and finishes with exactly one
    ``ImportResult``. File-level problems raise ``FileRejectedError`` before
    any row is read.
    """

    def __init__(
        self,
        filename: str,
        size: int,
        chunks: AsyncIterable[bytes],
        abort_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.filename = filename
        self.size = size
        self.state = ImportState.IDLE
        self._chunks = chunks
        self._abort = abort_event if abort_event is not None else asyncio.Event()
        self._acc = _ImportAccumulator(size)
        self._tokenizer = CsvTokenizer()
        self._decoder = codecs.getincrementaldecoder("utf-8-sig")()
        self._decode_errors: list[RowError] = []
        self._columns: Optional[list[str]] = None
        self._last_row = 0

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def abort(self) -> None:
        """Stop consuming rows; the run resolves with what it has so far."""
        self._abort.set()

    async def events(self) -> AsyncIterator[ImportEvent]:
        if self.state != ImportState.IDLE:
            raise RuntimeError(f"Import of {self.filename} already started")

        self.state = ImportState.VALIDATING_FILE
        try:
            check_csv_file(self.filename, self.size)
        except FileRejectedError as e:
            self.state = ImportState.FAILED
            logger.warning(f"Rejected {self.filename}: {e}")
            raise

        self.state = ImportState.STREAMING_ROWS
        logger.info(f"Importing {self.filename} ({self.size} bytes)")

        try:
            async for chunk in self._chunks:
                self._acc.loaded += len(chunk)
                for parsed in self._tokenizer.feed(self._decode(chunk)):
                    if self.aborted:
                        break
                    progress = self._consume(parsed)
                    if progress is not None:
                        yield progress
                if self.aborted:
                    break
        except OSError as e:
            self.state = ImportState.FAILED
            raise FileRejectedError(f"Failed to read {self.filename}: {e}") from e

        if self.aborted:
            logger.info(
                f"Import of {self.filename} aborted after {self._acc.rows_processed} rows"
            )
            await self._close_chunks()
        else:
            tail = self._tokenizer.feed(self._decode(b"", final=True))
            tail.extend(self._tokenizer.close())
            for parsed in tail:
                if self.aborted:
                    break
                progress = self._consume(parsed)
                if progress is not None:
                    yield progress

        # Parser-level problems are reported once the stream has finished,
        # limited to the rows actually consumed when the run was aborted
        for error in self._decode_errors + self._tokenizer.errors:
            if not self.aborted or error.row <= self._last_row:
                self._acc.errors.append(error)

        result = self._acc.result(aborted=self.aborted)
        self.state = ImportState.COMPLETE
        logger.info(
            f"Import of {self.filename} complete: {len(result.imported)} imported, "
            f"{len(result.errors)} errors, {result.skipped} skipped"
        )
        yield result

    async def run(self, on_progress: Optional[ProgressCallback] = None) -> ImportResult:
        """Drive ``events()`` to completion and return the result."""
        async for event in self.events():
            if isinstance(event, ImportResult):
                return event
            if on_progress is not None:
                on_progress(event)
        raise RuntimeError(f"Import of {self.filename} ended without a result")

    def _decode(self, chunk: bytes, final: bool = False) -> str:
        try:
            return self._decoder.decode(chunk, final)
        except UnicodeDecodeError as e:
            row = self._tokenizer.rows_seen + 1
            logger.warning(f"Invalid UTF-8 in {self.filename} near row {row}: {e}")
            self._decode_errors.append(
                RowError(
                    row=row,
                    message=f"Parse error: invalid UTF-8 ({e.reason})",
                    data=repr(e.object[e.start:e.end]),
                )
            )
            # Report once, then keep going with replacement characters
            self._decoder.errors = "replace"
            return self._decoder.decode(chunk, final)

    def _consume(self, parsed: ParsedRow) -> Optional[ImportProgress]:
        if self._columns is None:
            self._columns = [normalize_header(h) for h in self._tokenizer.header or []]

        row: dict[str, str] = {}
        for column, value in zip(self._columns, parsed.fields):
            row.setdefault(column, value)

        self._last_row = parsed.number
        record, errors = validate_row(row, parsed.number)
        self._acc.add(record, errors)

        if self._acc.rows_processed % PROGRESS_INTERVAL == 0:
            return self._acc.snapshot()
        return None

    async def _close_chunks(self) -> None:
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()


async def _read_file(path: Path, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while True:
            chunk = await asyncio.to_thread(f.read, chunk_size)
            if not chunk:
                break
            yield chunk


async def _iter_bytes(data: bytes, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]
        await asyncio.sleep(0)


def stream_file(
    path: Path,
    abort_event: Optional[asyncio.Event] = None,
    chunk_size: int = CHUNK_SIZE,
) -> CsvImport:
    """Prepare an import of a CSV file on disk."""
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as e:
        raise FileRejectedError(f"Cannot open {path}: {e}") from e
    return CsvImport(path.name, size, _read_file(path, chunk_size), abort_event=abort_event)


def stream_bytes(
    filename: str,
    data: bytes,
    abort_event: Optional[asyncio.Event] = None,
    chunk_size: int = CHUNK_SIZE,
) -> CsvImport:
    """Prepare an import of an in-memory upload."""
    return CsvImport(filename, len(data), _iter_bytes(data, chunk_size), abort_event=abort_event)


async def import_csv_file(
    path: Path,
    on_progress: Optional[ProgressCallback] = None,
    abort_event: Optional[asyncio.Event] = None,
) -> ImportResult:
    """Import a CSV file, calling ``on_progress`` with intermediate snapshots."""
    return await stream_file(path, abort_event=abort_event).run(on_progress)


async def import_csv_bytes(
    filename: str,
    data: bytes,
    on_progress: Optional[ProgressCallback] = None,
    abort_event: Optional[asyncio.Event] = None,
) -> ImportResult:
    """Import an in-memory CSV upload."""
    return await stream_bytes(filename, data, abort_event=abort_event).run(on_progress)
