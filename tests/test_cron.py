from autosensor.lib.cron import register_schedule
from autosensor.steps.step_75_schedule_updates import PULLEDPORK_SCHEDULE

SYSTEM_CRONTAB = """SHELL=/bin/sh
PATH=/usr/local/sbin:/usr/local/bin:/sbin:/bin:/usr/sbin:/usr/bin
17 *\t* * *\troot    cd / && run-parts --report /etc/cron.hourly
"""


def entry_lines(text):
    return [ln for ln in text.splitlines() if PULLEDPORK_SCHEDULE.command in ln and not ln.startswith("#")]


def test_registration_is_idempotent(tmp_path):
    crontab = tmp_path / "crontab"
    crontab.write_text(SYSTEM_CRONTAB)

    assert register_schedule(crontab, PULLEDPORK_SCHEDULE) is True
    assert register_schedule(crontab, PULLEDPORK_SCHEDULE) is False

    text = crontab.read_text()
    assert entry_lines(text) == [PULLEDPORK_SCHEDULE.render()]
    assert text.count(PULLEDPORK_SCHEDULE.comment) == 1
    assert "run-parts --report /etc/cron.hourly" in text


def test_legacy_entries_are_replaced(tmp_path):
    crontab = tmp_path / "crontab"
    crontab.write_text(
        SYSTEM_CRONTAB
        + "# This line has been added by Autosnort to run PulledPork for the latest rule updates.\n"
        + "0 12 * * * root /usr/src/pulledpork/pulledpork.pl -c /usr/src/pulledpork/etc/pulledpork.conf\n"
        + "0 0 * * 7 root /usr/src/pulledpork/pulledpork.pl -c /usr/src/pulledpork/etc/pulledpork.conf\n"
    )

    register_schedule(crontab, PULLEDPORK_SCHEDULE)

    text = crontab.read_text()
    assert entry_lines(text) == [PULLEDPORK_SCHEDULE.render()]
    assert "Autosnort" not in text


def test_missing_crontab_is_created(tmp_path):
    crontab = tmp_path / "etc" / "crontab"

    assert register_schedule(crontab, PULLEDPORK_SCHEDULE)
    assert entry_lines(crontab.read_text()) == [PULLEDPORK_SCHEDULE.render()]


def test_dry_run_leaves_file_alone(tmp_path):
    crontab = tmp_path / "crontab"
    crontab.write_text(SYSTEM_CRONTAB)

    assert register_schedule(crontab, PULLEDPORK_SCHEDULE, dry_run=True)
    assert crontab.read_text() == SYSTEM_CRONTAB
