import sys

import pytest

from autosensor.audit import AuditLogger
from autosensor.errors import CommandError
from autosensor.lib.command import NOT_FOUND_RC, TIMEOUT_RC, run_cmd


def test_captures_output():
    r = run_cmd([sys.executable, "-c", "print('hello')"])
    assert r.ok
    assert r.stdout.strip() == "hello"


def test_check_raises_with_stderr():
    with pytest.raises(CommandError) as exc:
        run_cmd([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])
    assert exc.value.returncode == 3
    assert "boom" in str(exc.value)


def test_timeout_is_a_normal_failure():
    r = run_cmd([sys.executable, "-c", "import time; time.sleep(5)"], check=False, timeout=0.2)
    assert r.returncode == TIMEOUT_RC


def test_missing_binary_is_a_normal_failure():
    r = run_cmd(["definitely-not-a-real-binary-xyz"], check=False)
    assert r.returncode == NOT_FOUND_RC


def test_dry_run_does_not_execute(tmp_path):
    marker = tmp_path / "ran"
    r = run_cmd([sys.executable, "-c", f"open({str(marker)!r}, 'w')"], dry_run=True)
    assert r.ok
    assert not marker.exists()


def test_audit_log_sits_beside_install_log(tmp_path):
    audit = AuditLogger.beside_log(str(tmp_path / "autosnort_install.log"))
    audit.log({"step": "10_system_update", "status": "succeeded"})

    assert audit.path == tmp_path / "autosnort_install.audit.jsonl"
    assert '"status": "succeeded"' in audit.path.read_text()
