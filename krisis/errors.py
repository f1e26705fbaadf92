"""Exceptions raised by the import pipeline."""


class KrisisError(Exception):
    """Base class for krisis errors."""


class FileRejectedError(KrisisError):
    """An uploaded file was refused before any row was read.

    Raised for a wrong extension, an oversize or empty file, or a file that
    cannot be opened. Row-level problems are never raised; they are collected
    as ``RowError`` entries on the import result.
    """
