import pytest

from app.enums.common import ScheduleInterval
from app.services.application.analysis_schedule_service import (
    INTERVAL_KEY,
    LAST_RUN_KEY,
    AnalysisScheduleService,
)

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
START_MS = 1_790_000_000_000


@pytest.fixture()
def schedule(settings_repo):
    return AnalysisScheduleService(settings_repo, clock=lambda: START_MS / 1000)


def test_defaults_to_manual(schedule):
    assert schedule.interval is ScheduleInterval.MANUAL
    assert schedule.last_run_ms == 0
    assert not schedule.is_due(START_MS)
    assert schedule.next_run_description(START_MS) == "Manual"
    assert schedule.tick_seconds() == 60


def test_set_interval_persists_and_restarts_countdown(schedule, settings_repo):
    schedule.set_interval(ScheduleInterval.HOURS_6)

    assert settings_repo.get_setting(INTERVAL_KEY) == "6h"
    assert settings_repo.get_setting(LAST_RUN_KEY) == str(START_MS)
    assert schedule.interval is ScheduleInterval.HOURS_6
    assert not schedule.is_due(START_MS + 6 * HOUR_MS - 1)
    assert schedule.is_due(START_MS + 6 * HOUR_MS)


def test_switching_to_manual_keeps_last_run(schedule, settings_repo):
    schedule.mark_completed(123)
    schedule.set_interval(ScheduleInterval.MANUAL)

    assert settings_repo.get_setting(LAST_RUN_KEY) == "123"
    assert not schedule.is_due(START_MS)


@pytest.mark.parametrize(
    ("elapsed_ms", "expected"),
    [
        (0, "3 jam 0 menit lagi"),
        (30 * MINUTE_MS, "2 jam 30 menit lagi"),
        (2 * HOUR_MS + 59 * MINUTE_MS, "1 menit lagi"),
        (3 * HOUR_MS - 30 * 1000, "0 menit lagi"),
        (3 * HOUR_MS, "Sedang menunggu..."),
        (5 * HOUR_MS, "Sedang menunggu..."),
    ],
)
def test_next_run_description_hours(schedule, elapsed_ms, expected):
    schedule.set_interval(ScheduleInterval.HOURS_3)
    assert schedule.next_run_description(START_MS + elapsed_ms) == expected


def test_next_run_description_days(schedule):
    schedule.set_interval(ScheduleInterval.DAYS_7)

    assert schedule.next_run_description(START_MS) == "7 hari lagi"
    # Exactly 24 hours left is still shown in hours
    assert schedule.next_run_description(START_MS + 6 * 24 * HOUR_MS) == "24 jam 0 menit lagi"


def test_time_range_follows_interval(schedule):
    assert schedule.time_range().label == "24 jam terakhir"

    schedule.set_interval(ScheduleInterval.DAYS_30)
    time_range = schedule.time_range()
    assert time_range.label == "1 Bulan"
    assert time_range.seconds == 30 * 24 * 60 * 60


def test_tick_is_a_tenth_of_short_intervals(schedule):
    schedule.set_interval(ScheduleInterval.HOURS_3)
    assert schedule.tick_seconds() == 60
    assert schedule.tick_seconds(ceiling=30) == 30
    assert schedule.tick_seconds(ceiling=5000) == 3 * 60 * 60 / 10


def test_unknown_stored_interval_falls_back_to_manual(schedule, settings_repo):
    settings_repo.set_setting(INTERVAL_KEY, "fortnightly")
    assert schedule.interval is ScheduleInterval.MANUAL


def test_status_payload(schedule):
    schedule.set_interval(ScheduleInterval.HOURS_12)

    status = schedule.get_status(START_MS + HOUR_MS)

    assert status == {
        "interval": "12h",
        "label": "12 Jam",
        "lastAnalysisAt": "2026-09-21T14:13:20.000Z",
        "nextRun": "11 jam 0 menit lagi",
        "due": False,
    }
