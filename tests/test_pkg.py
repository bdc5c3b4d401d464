"""apt wrappers: non-interactive, bounded in time, failures retryable."""
import pytest

from autosensor.errors import AcquisitionError
from autosensor.lib.gpg import verify_apt_keyring
from autosensor.lib.pkg import APT_TIMEOUT_S, apt_install, apt_update, apt_upgrade


def apt_timeouts(runner):
    return [t for argv, t in zip(runner.calls, runner.timeouts) if argv[0] == "apt-get"]


def test_apt_commands_carry_a_timeout(ctx, runner):
    apt_update(ctx)
    apt_upgrade(ctx)
    apt_install(ctx, ["gcc"])

    assert len(runner.ran("apt-get")) == 3
    assert apt_timeouts(runner) == [APT_TIMEOUT_S] * 3


def test_keyring_check_apt_update_carries_a_timeout(ctx, runner):
    runner.on("apt-get", "update", rc=[100, 0], stderr="NO_PUBKEY 3B4FE6ACC0B21F32")

    assert verify_apt_keyring(ctx, "3B4FE6ACC0B21F32", "ubuntu-key1").ok
    assert apt_timeouts(runner) == [APT_TIMEOUT_S] * 2


def test_hung_mirror_is_a_retryable_failure(ctx, runner):
    runner.on("apt-get", "update", rc=124, stderr="Timeout expired after 1800s")

    with pytest.raises(AcquisitionError) as exc:
        apt_update(ctx)
    assert exc.value.retryable


def test_empty_install_is_a_no_op(ctx, runner):
    apt_install(ctx, [])
    assert runner.calls == []
