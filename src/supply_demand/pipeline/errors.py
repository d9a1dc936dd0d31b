# ========================
# src/supply_demand/pipeline/errors.py
# ========================

"""
Pipeline Errors

Every failure aborts the run. Errors carry enough context (row, column,
raw value, stage) for the log line to point at the offending input.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, row: Optional[int] = None,
                 column: Optional[str] = None, value: Any = None):
        self.message = message
        self.row = row
        self.column = column
        self.value = value
        # Filled in by the orchestrator when the error crosses a stage boundary
        self.stage: Optional[str] = None
        super().__init__(message)

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        parts.append(self.message)
        context = []
        if self.row is not None:
            context.append(f"row={self.row}")
        if self.column is not None:
            context.append(f"column={self.column!r}")
        if self.value is not None:
            context.append(f"value={self.value!r}")
        if context:
            parts.append(f"({', '.join(context)})")
        return " ".join(parts)


class LoadError(PipelineError):
    """Input file missing, unreadable or structurally malformed."""


class ParseError(PipelineError):
    """A timestamp cell does not match the fixed format after normalization."""


class ValidationError(PipelineError):
    """A value outside its known domain, or a broken record invariant."""
