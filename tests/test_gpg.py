"""Keyserver rounds and apt keyring verification."""
from autosensor.lib.gpg import KEYSERVERS, import_gpg_key, receive_key, verify_apt_keyring

KEY = "3B4FE6ACC0B21F32"


def recv_servers(runner):
    return [c[c.index("--keyserver") + 1] for c in runner.ran("gpg", "--batch", "--keyserver")]


def test_second_keyserver_succeeds(ctx, runner, sleeps):
    runner.on("gpg", "--batch", "--keyserver", KEYSERVERS[0], rc=2)

    assert receive_key(ctx, KEY).ok
    assert recv_servers(runner) == list(KEYSERVERS[:2])
    assert sleeps == []


def test_fetched_but_unlisted_key_tries_next_keyserver(ctx, runner):
    runner.on("gpg", "--batch", "--list-keys", KEY, rc=[2, 0])

    assert receive_key(ctx, KEY).ok
    assert recv_servers(runner) == list(KEYSERVERS[:2])


def test_success_in_a_later_round(ctx, runner, sleeps):
    runner.on("gpg", "--batch", "--keyserver", rc=[2, 2, 2, 0])

    assert receive_key(ctx, KEY).ok
    assert len(recv_servers(runner)) == 4
    assert sleeps == [5.0]


def test_fails_only_after_every_round_and_keyserver(ctx, runner, sleeps):
    runner.on("gpg", "--batch", "--keyserver", rc=2)

    res = receive_key(ctx, KEY)

    assert not res.ok
    assert len(recv_servers(runner)) == 3 * len(KEYSERVERS)
    assert sleeps == [5.0, 5.0]


def test_import_exports_armored_and_binary(ctx, runner):
    assert import_gpg_key(ctx, KEY, "ubuntu-key1").ok

    exports = runner.ran("gpg", "--batch", "--yes")
    assert len(exports) == 2
    assert "--armor" in exports[0] and exports[0][-3].endswith("trusted.gpg.d/ubuntu-key1.asc")
    assert "--armor" not in exports[1] and exports[1][-3].endswith("trusted.gpg.d/ubuntu-key1.gpg")


def test_import_failure_skips_export(ctx, runner):
    runner.on("gpg", "--batch", "--keyserver", rc=2)

    res = import_gpg_key(ctx, KEY, "ubuntu-key1")

    assert not res.ok
    assert runner.ran("gpg", "--batch", "--yes") == []


def test_apt_keyring_falls_back_to_apt_key(ctx, runner):
    runner.on("apt-get", "update", rc=[100, 0], stderr=f"W: GPG error: NO_PUBKEY {KEY}")

    assert verify_apt_keyring(ctx, KEY, "ubuntu-key1").ok
    assert len(runner.ran("apt-key", "add")) == 1
    assert len(runner.ran("apt-get", "update")) == 2


def test_apt_failure_unrelated_to_key(ctx, runner):
    runner.on("apt-get", "update", rc=100, stderr="E: Could not resolve archive.ubuntu.com")

    assert not verify_apt_keyring(ctx, KEY, "ubuntu-key1").ok
    assert runner.ran("apt-key") == []
