"""
Outcome -- result types separating recoverable from fatal conditions.

Responsibility:
    Row derivation returns ``Derived`` (lines produced) or ``Recovered``
    (row dropped, warning recorded, fallback value used). Run-level
    failures are raised as typed exceptions and captured as ``Fatal`` on
    the run outcome, so a recoverable row issue can never abort a run and
    a resource issue always does.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from payroll_kernel.domain.journal import JournalLine


@dataclass(frozen=True)
class Derived:
    """A row produced one or more journal lines."""

    lines: tuple[JournalLine, ...]

    @property
    def recovered(self) -> bool:
        return False


@dataclass(frozen=True)
class Recovered:
    """
    A row-level problem was absorbed locally.

    ``warning`` is a snake_case reason code (e.g. ``non_numeric_amount``);
    ``fallback`` is what the caller uses instead (an empty tuple of lines
    for a dropped row).
    """

    warning: str
    fallback: Any = ()
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def recovered(self) -> bool:
        return True

    @property
    def lines(self) -> tuple[JournalLine, ...]:
        return tuple(self.fallback) if isinstance(self.fallback, (tuple, list)) else ()


@dataclass(frozen=True)
class Fatal:
    """A run-level failure; no output is written."""

    reason: str
    code: str = "PAYROLL_JOURNAL_ERROR"

    @classmethod
    def from_exception(cls, exc: Exception) -> Fatal:
        return cls(reason=str(exc), code=getattr(exc, "code", type(exc).__name__))


RowResult = Union[Derived, Recovered]
