"""Reduce workflow runs to a single pass/fail outcome."""

from __future__ import annotations

from radci_core.models import AggregateOutcome, Conclusion, OverallResult, ResponseKind, WorkflowResult


def workflow_label(result: WorkflowResult) -> str:
    """Return the text shown for a run: its conclusion, or its status while it has none."""
    if result.conclusion is None:
        return result.status.value
    if result.conclusion is Conclusion.OTHER and result.conclusion_detail:
        return result.conclusion_detail
    return result.conclusion.value


def aggregate(results: list[WorkflowResult], kind: ResponseKind = ResponseKind.FINISHED) -> AggregateOutcome:
    """Overall result is success iff every run concluded with success (vacuously true for none)."""
    succeeded = all(r.conclusion is Conclusion.SUCCESS for r in results)
    return AggregateOutcome(
        kind=kind,
        result=OverallResult.SUCCESS if succeeded else OverallResult.FAILURE,
        workflows=list(results),
    )
