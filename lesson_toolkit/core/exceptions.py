from __future__ import annotations

"""Exception classes raised by Lesson Toolkit collaborators.

The editing core itself never raises to callers of public store operations;
these exceptions are raised by the loader and handled at the controller
boundary.
"""

from pathlib import Path
from typing import Optional, Union


class LessonToolkitError(Exception):
    """Base exception for all Lesson Toolkit errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class SectionLoadError(LessonToolkitError):
    """Raised when a lesson source cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        source: Optional[Union[str, Path]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"[Source: {self.source}] {super().__str__()}"
        return super().__str__()
