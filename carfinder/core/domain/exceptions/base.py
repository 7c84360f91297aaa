"""Root of the carfinder error hierarchy.

A ``CarFinderError`` knows its error code, where it was raised and what
caused it, which is all the API and CLI need to build a failure body or a
log line without ever showing a traceback to a buyer.
"""

import inspect
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class ExceptionContext:
    """Raise site of a carfinder error."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


_UNKNOWN_SITE = ("<unknown>", "<unknown>", "<unknown>", 0)


class CarFinderError(Exception):
    """Base class for every failure the recommendation service reports.

    Adapters wrap third-party failures so callers only ever catch this tree::

        except Exception as e:
            raise QdrantQueryError(
                "Chunk similarity query failed", cause=e, context={"collection": name}
            ) from e

    Args:
        message: Text shown to API and CLI users.
        cause: Library exception being wrapped, if any.
        context: Identifiers worth logging, such as a vehicle id or collection.
    """

    error_code: str = "CF_ERR_001"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = context or {}
        self.location = self._raise_site()
        # Only meaningful while the wrapped exception is being handled
        self.stack_trace = traceback.format_exc() if cause else None

    def _raise_site(self) -> ExceptionContext:
        frame = inspect.currentframe()
        frame = frame.f_back if frame else None
        # Climb out of this __init__ and any subclass __init__ chained to it
        while (
            frame is not None
            and frame.f_back is not None
            and frame.f_code.co_name == "__init__"
            and isinstance(frame.f_locals.get("self"), CarFinderError)
        ):
            frame = frame.f_back
        if frame is None:
            return ExceptionContext(*_UNKNOWN_SITE)

        owner = frame.f_locals.get("self")
        return ExceptionContext(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=frame.f_code.co_filename.replace("\\", "/").rsplit("/", 1)[-1],
            line_number=frame.f_lineno,
        )

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Structured form used by the JSON log formatter and the CLI.

        The stack trace is added only when ``include_trace`` is set and the
        error wraps a cause.
        """
        data: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            data["context"] = self.extra_context
        if include_trace and self.stack_trace:
            data["stack_trace"] = [line for line in self.stack_trace.splitlines() if line.strip()]
        if self.cause:
            data["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        return data
