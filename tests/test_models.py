import pytest

from deploypipe.errors import DeployError
from deploypipe.models import (
    BuildEnvironment,
    EnvironmentConfig,
    PipelineFlags,
    PipelineRun,
    StageOutcome,
    StageResult,
)


def _run():
    return PipelineRun(
        environment=EnvironmentConfig("staging", "https://staging.example.com", "staging"),
        flags=PipelineFlags(),
    )


def _result(name, outcome=StageOutcome.SUCCESS):
    return StageResult(stage_name=name, outcome=outcome, duration_ms=1)


def test_pipeline_run_records_stages_in_order():
    run = _run()
    run.record(_result("prerequisites"))
    run.record(_result("tests", StageOutcome.SKIPPED))
    run.record(_result("notify"))

    assert [result.stage_name for result in run.stage_results] == ["prerequisites", "tests", "notify"]
    assert run.result_for("tests").outcome is StageOutcome.SKIPPED
    assert run.outcome is StageOutcome.SUCCESS


def test_pipeline_run_rejects_reentered_stage():
    run = _run()
    run.record(_result("build"))

    with pytest.raises(DeployError, match="cannot run after"):
        run.record(_result("build"))


def test_pipeline_run_rejects_out_of_order_stage():
    run = _run()
    run.record(_result("activation"))

    with pytest.raises(DeployError):
        run.record(_result("backup"))


def test_notification_failure_does_not_fail_run():
    run = _run()
    run.record(_result("activation"))
    run.record(_result("notify", StageOutcome.FAILURE))

    assert run.outcome is StageOutcome.SUCCESS


def test_stage_failure_or_explicit_failure_fails_run():
    failed_stage = _run()
    failed_stage.record(_result("tests", StageOutcome.FAILURE))

    marked = _run()
    marked.record(_result("activation", StageOutcome.SKIPPED))
    marked.mark_failed("No deployment logic is configured for staging.")

    assert failed_stage.outcome is StageOutcome.FAILURE
    assert marked.outcome is StageOutcome.FAILURE


def test_build_environment_renders_mode_variables():
    assert BuildEnvironment(mode="production").as_env() == {
        "NODE_ENV": "production",
        "BUILD_ENV": "production",
    }
