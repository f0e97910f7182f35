"""Errors raised by the copybook pipeline.

Data-quality problems in a copybook never raise; they degrade to documented
defaults. Only contract violations and boundary failures (missing files, empty
input) surface as ``CopybookError``.
"""

from __future__ import annotations


class CopybookError(ValueError):
    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
