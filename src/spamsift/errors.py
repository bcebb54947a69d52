from enum import Enum
from typing import ClassVar


class ErrorKind(Enum):
    """
    Closed set of failure kinds raised by the SpamSift pipeline.

    Drivers (the CLI and the API) branch on `SpamSiftError.kind` instead of
    catching individual exception classes.
    """

    IO = "io"
    FORMAT = "format"
    STATE = "state"
    NOT_FOUND = "not_found"
    CORRUPT_MODEL = "corrupt_model"


class SpamSiftError(Exception):
    """Base class for every error the pipeline raises on purpose."""

    kind: ClassVar[ErrorKind]


class StorageIOError(SpamSiftError, OSError):
    """A file could not be opened, read or written."""

    kind = ErrorKind.IO


class FormatError(SpamSiftError):
    """A dataset file or dataset content does not match the expected schema."""

    kind = ErrorKind.FORMAT


class StateError(SpamSiftError):
    """An operation was invoked in the wrong pipeline phase (e.g. predict before fit)."""

    kind = ErrorKind.STATE


class NotFoundError(SpamSiftError):
    """An expected-absent artifact (typically the model file) does not exist."""

    kind = ErrorKind.NOT_FOUND


class CorruptModelError(SpamSiftError):
    """A persisted model failed its consistency checks."""

    kind = ErrorKind.CORRUPT_MODEL
