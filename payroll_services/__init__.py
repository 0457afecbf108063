"""
payroll_services -- orchestration of journal runs.

Builds the run context, dispatches the journal type to its pipeline and
drives it from source extract to written journal.
"""

from payroll_services.context import RunContext, build_run_context
from payroll_services.dispatcher import (
    PipelineBinding,
    PipelineMode,
    PipelineParams,
    dispatch,
    parse_journal_type,
)
from payroll_services.pipeline import RunOutcome, run_journal

__all__ = [
    "PipelineBinding",
    "PipelineMode",
    "PipelineParams",
    "RunContext",
    "RunOutcome",
    "build_run_context",
    "dispatch",
    "parse_journal_type",
    "run_journal",
]
