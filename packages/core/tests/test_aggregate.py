"""Tests for workflow result aggregation."""

import pytest

from radci_core.aggregate import aggregate, workflow_label
from radci_core.models import Conclusion, OverallResult, ResponseKind, WorkflowResult, WorkflowStatus


def _run(run_id, conclusion=Conclusion.SUCCESS, status=WorkflowStatus.COMPLETED, detail=""):
    return WorkflowResult(
        id=run_id, name=f"wf{run_id}", status=status, conclusion=conclusion, conclusion_detail=detail
    )


def test_no_runs_is_vacuous_success():
    outcome = aggregate([])
    assert outcome.result is OverallResult.SUCCESS
    assert outcome.kind is ResponseKind.FINISHED
    assert outcome.workflows == []


def test_single_success():
    assert aggregate([_run("1")]).result is OverallResult.SUCCESS


def test_single_failure():
    assert aggregate([_run("1", Conclusion.FAILURE)]).result is OverallResult.FAILURE


@pytest.mark.parametrize("position", [0, 2, 4])
def test_one_failure_among_many_fails(position):
    runs = [_run(str(i)) for i in range(5)]
    runs[position] = _run(str(position), Conclusion.FAILURE)
    assert aggregate(runs).result is OverallResult.FAILURE


def test_other_conclusion_is_not_success():
    assert aggregate([_run("1"), _run("2", Conclusion.OTHER, detail="cancelled")]).result is OverallResult.FAILURE


def test_unfinished_run_is_not_success():
    pending = _run("1", conclusion=None, status=WorkflowStatus.IN_PROGRESS)
    assert aggregate([pending]).result is OverallResult.FAILURE


def test_provider_order_preserved():
    runs = [_run("3"), _run("1"), _run("2")]
    assert [w.id for w in aggregate(runs).workflows] == ["3", "1", "2"]


def test_label_falls_back_to_status_without_conclusion():
    assert workflow_label(_run("1", conclusion=None, status=WorkflowStatus.QUEUED)) == "queued"


def test_label_uses_raw_detail_for_other_conclusions():
    assert workflow_label(_run("1", Conclusion.OTHER, detail="timed_out")) == "timed_out"


def test_label_for_success():
    assert workflow_label(_run("1")) == "success"
