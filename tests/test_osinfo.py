import pytest

from autosensor.errors import PreflightError
from autosensor.lib.osinfo import FALLBACK_DISTRO, detect_platform, detect_release, resolve_platform


@pytest.mark.parametrize("release,distro", [("18.04", "Ubuntu-18-04"), ("20.04", "Ubuntu-20-04")])
def test_supported_releases(release, distro):
    p = resolve_platform(release)
    assert p.distro == distro
    assert p.release == release


def test_unsupported_release_warns_and_falls_back(caplog):
    p = resolve_platform("22.04")

    assert p.distro == FALLBACK_DISTRO
    assert "NOT been tested" in caplog.text


def test_unsupported_release_is_fatal_when_strict():
    with pytest.raises(PreflightError, match="strict_platform"):
        resolve_platform("22.04", strict=True)


def test_detect_release_parses_lsb_release(runner):
    runner.on("lsb_release", "-r", stdout="Release:\t20.04\n")

    assert detect_release(runner=runner) == "20.04"
    assert detect_platform(runner=runner) == ("20.04", "Ubuntu-20-04")


def test_detect_release_without_lsb_release(runner):
    runner.on("lsb_release", rc=127)

    assert detect_release(runner=runner) == ""
    assert detect_platform(runner=runner) == ("", FALLBACK_DISTRO)
