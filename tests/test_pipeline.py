"""Controller ordering, per-step retries, abort semantics, gates and audit trail."""
import json

import pytest

from autosensor.audit import AuditLogger
from autosensor.errors import AcquisitionError, EnvironmentMismatchError
from autosensor.gates import ValidationGate, config_test, dir_has_rules, file_non_empty, path_exists, run_gates
from autosensor.pipeline import Controller, ControllerState, StepState, run_pipeline
from autosensor.result import Result
from autosensor.retry import RetryPolicy
from autosensor.steps import InstallServiceStep, ValidateStep
from autosensor.templates import SystemdUnit


class ScriptedStep:
    def __init__(self, step_id, *outcomes, policy=None, log=None):
        self.step_id = step_id
        self.policy = policy or RetryPolicy.once()
        self.outcomes = list(outcomes) or [Result.success()]
        self.log = log if log is not None else []

    def run(self, ctx):
        self.log.append(self.step_id)
        out = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(out, Exception):
            raise out
        return out


def read_audit(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_steps_run_in_order(ctx):
    log = []
    steps = [ScriptedStep(s, log=log) for s in ("10_a", "20_b", "30_c")]

    result = run_pipeline(ctx=ctx, steps=steps)

    assert result.ok
    assert log == ["10_a", "20_b", "30_c"]
    assert result.ran_steps == ["10_a", "20_b", "30_c"]
    assert all(s is StepState.SUCCEEDED for s in result.step_states.values())


def test_first_exhausted_step_aborts_the_run(ctx):
    log = []
    steps = [
        ScriptedStep("10_a", log=log),
        ScriptedStep("20_b", Result.failure("broken", remediation="fix it"), log=log),
        ScriptedStep("30_c", log=log),
    ]

    result = run_pipeline(ctx=ctx, steps=steps)

    assert result.state is ControllerState.ABORTED
    assert log == ["10_a", "20_b"]
    assert result.failed_step == "20_b"
    assert result.cause == "broken"
    assert result.remediation == "fix it"
    assert result.step_states["20_b"] is StepState.FAILED_EXHAUSTED
    assert result.step_states["30_c"] is StepState.PENDING


def test_step_level_retry_uses_its_own_policy(ctx, sleeps):
    flaky = ScriptedStep(
        "10_fetch",
        AcquisitionError("mirror timeout"),
        AcquisitionError("mirror timeout"),
        Result.success(),
        policy=RetryPolicy.network(),
    )

    result = run_pipeline(ctx=ctx, steps=[flaky])

    assert result.ok
    assert sleeps == [5.0, 5.0]


def test_environment_errors_are_not_retried(ctx, sleeps):
    step = ScriptedStep("10_x", EnvironmentMismatchError("no gcc"), policy=RetryPolicy.network())

    result = run_pipeline(ctx=ctx, steps=[step])

    assert not result.ok
    assert step.log == ["10_x"]
    assert sleeps == []


def test_unexpected_exceptions_propagate(ctx):
    with pytest.raises(KeyError):
        run_pipeline(ctx=ctx, steps=[ScriptedStep("10_x", KeyError("bug"))])


def test_duplicate_step_ids_rejected(ctx):
    with pytest.raises(ValueError):
        run_pipeline(ctx=ctx, steps=[ScriptedStep("10_a"), ScriptedStep("10_a")])


def test_controller_is_single_use(ctx):
    c = Controller(ctx)
    c.run([ScriptedStep("10_a")])
    with pytest.raises(RuntimeError):
        c.run([ScriptedStep("10_a")])


def test_audit_records_every_attempt(ctx, tmp_path):
    audit = AuditLogger(tmp_path / "audit.jsonl")
    steps = [
        ScriptedStep("10_a"),
        ScriptedStep("20_b", Result.failure("flaky", retryable=True), Result.success(), policy=RetryPolicy(2)),
    ]

    run_pipeline(ctx=ctx, steps=steps, audit=audit)

    events = [(e["step"], e["status"]) for e in read_audit(tmp_path / "audit.jsonl")]
    assert events == [
        (None, "running"),
        ("10_a", "succeeded"),
        ("20_b", "retrying"),
        ("20_b", "succeeded"),
        (None, "completed"),
    ]


def test_failing_gate_blocks_service_enable(ctx, runner):
    unit = SystemdUnit(description="x", exec_start="/bin/true", user="root", group="root", pid_file="/run/x.pid")
    gate = ValidationGate(name="never", check=lambda c: Result.failure("rules missing"))
    steps = [ValidateStep("80_validate", [gate]), InstallServiceStep("90_install_service", "x.service", unit)]

    result = run_pipeline(ctx=ctx, steps=steps)

    assert result.failed_step == "80_validate"
    assert runner.ran("systemctl") == []


def test_gates_stop_at_first_failure(ctx, runner, tmp_path):
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "empty.rules").write_text("")
    gates = [
        path_exists("/etc", directory=True),
        file_non_empty("/etc/empty.rules"),
        config_test(["snort", "-T"], description="Snort configuration test"),
    ]

    res = run_gates(gates, ctx)

    assert not res.ok
    assert "empty" in res.cause
    assert runner.ran("snort") == []


def test_config_test_gate_reports_manual_command(ctx, runner):
    runner.on("snort", rc=1)

    res = run_gates([config_test(["snort", "-T", "-c", "/opt/snort/etc/snort.conf"], description="t")], ctx)

    assert not res.ok
    assert res.remediation == "Run manually: snort -T -c /opt/snort/etc/snort.conf"


def test_rules_gate(ctx, tmp_path):
    rules = tmp_path / "etc/suricata/rules"
    rules.mkdir(parents=True)
    gate = dir_has_rules("/etc/suricata/rules")

    assert not gate.check(ctx).ok
    (rules / "emerging.rules").write_text("alert ip any any -> any any (sid:1;)\n")
    assert gate.check(ctx).ok


def test_audit_records_exhaustion_and_abort(ctx, tmp_path):
    audit = AuditLogger(tmp_path / "audit.jsonl")
    steps = [ScriptedStep("10_a", Result.failure("mirror down", retryable=True), policy=RetryPolicy(2))]

    run_pipeline(ctx=ctx, steps=steps, audit=audit)

    events = read_audit(tmp_path / "audit.jsonl")
    assert [(e["step"], e["status"]) for e in events] == [
        (None, "running"),
        ("10_a", "retrying"),
        ("10_a", "failed_exhausted"),
        (None, "aborted"),
    ]
    assert events[2]["attempt"] == 2
    assert events[2]["error"] == "mirror down"
