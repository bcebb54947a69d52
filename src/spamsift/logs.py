import json
import logging
import sys
from typing import Any, Final, TextIO

# Attributes every LogRecord carries. Anything else on a record came in
# through `extra={...}` (path, line_number, request_id, kind, ...).
STANDARD_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the `extra={...}` fields attached to a record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in STANDARD_RECORD_FIELDS
    }


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: level, logger, message, epoch-millisecond
    time, the record's context fields, and the traceback if any.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "time_ms": int(record.created * 1000),
            **record_context(record),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextFormatter(logging.Formatter):
    """
    Human-readable formatter for the command line.

    Renders `LEVEL logger: message key=value ...`, so the dataset path and
    line number of a skipped row stay visible without JSON output.
    """

    def __init__(self) -> None:
        super().__init__("%(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(f"{k}={v}" for k, v in record_context(record).items())
        if not context:
            return line
        head, sep, traceback = line.partition("\n")
        return f"{head} {context}{sep}{traceback}"


def configure_logging(
    json_logs: bool = True, level: str = "INFO", stream: TextIO | None = None
) -> None:
    """
    Route all log records to a single handler on the root logger.

    Parameters
    ----------
    json_logs : bool
        Emit `JsonFormatter` lines instead of `ContextFormatter` text.
    level : str
        Root logger level, e.g. "DEBUG" or "WARNING".
    stream : TextIO | None
        Destination, `sys.stderr` when omitted so that command output on
        stdout is never interleaved with log lines.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter() if json_logs else ContextFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [handler]

    # A failing log sink must not abort training or serving.
    logging.raiseExceptions = False
