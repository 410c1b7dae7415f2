"""File ingestion exceptions.

Exception Hierarchy:
    InboxError (base)
    ├── UnsupportedTypeError
    ├── ReadError
    ├── ParseError
    └── WriteError

Watch and batch modes log these per file and move on; an explicit
single-file request lets them propagate.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any


def _class_name_to_error_code(class_name: str) -> str:
    """Convert CamelCase class name to SCREAMING_SNAKE_CASE error code.

    Example: UnsupportedTypeError -> UNSUPPORTED_TYPE_ERROR
    """
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", class_name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1).upper()


class InboxError(Exception):
    """Base error for everything that can go wrong processing one inbox file.

    Attributes:
        message: Human-readable error message.
        path: The input file the error relates to, when known.
        error_code: Machine-readable error code (auto-generated from class name).
        details: Additional structured context about the error.
    """

    def __init__(self, message: str, path: Path | str | None = None, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.error_code = _class_name_to_error_code(self.__class__.__name__)
        self.details: dict[str, Any] = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize for reports."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.path is not None:
            result["path"] = str(self.path)
        if self.details:
            result["details"] = self.details
        return result


class UnsupportedTypeError(InboxError):
    """No extractor is registered for the file's extension."""

    def __init__(self, path: Path | str | None = None, extension: str | None = None) -> None:
        ext = extension if extension is not None else (Path(path).suffix.lower() if path else "")
        super().__init__(f"No extractor for file type: {ext or '<none>'}", path, extension=ext)
        self.extension = ext


class ReadError(InboxError):
    """The input could not be read or decoded (including files that vanished)."""


class ParseError(InboxError):
    """The input is structurally invalid for a format that requires parsing."""


class WriteError(InboxError):
    """The asset copy or the rendered output could not be written."""
