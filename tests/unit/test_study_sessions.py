"""Unit tests for study timer sessions (bootcamp_tracker/gamification/study_sessions.py)"""
import pytest
from datetime import timedelta

from bootcamp_tracker.gamification.study_sessions import (
    FOCUS_MINUTES,
    RECENT_SESSIONS_SHOWN,
    record_study_session,
    summarize_study_time,
)

from conftest import NOW


def test_record_appends_and_adds_minutes():
    sessions, total = record_study_session([], 0, FOCUS_MINUTES, NOW)

    assert total == 25
    assert len(sessions) == 1
    assert sessions[0].mode == "focus"
    assert sessions[0].date == NOW


def test_record_does_not_mutate_input():
    first, total = record_study_session([], 0, 25, NOW)
    second, total = record_study_session(first, total, 5, NOW + timedelta(minutes=30), mode="break")

    assert len(first) == 1
    assert len(second) == 2
    assert total == 30


@pytest.mark.parametrize("duration", [0, -5])
def test_record_rejects_non_positive_duration(duration):
    with pytest.raises(ValueError):
        record_study_session([], 0, duration, NOW)


def test_record_rejects_unknown_mode():
    with pytest.raises(ValueError):
        record_study_session([], 0, 25, NOW, mode="nap")


def test_summary_hours_and_minutes():
    summary = summarize_study_time([], 125)
    assert summary["hours"] == 2
    assert summary["minutes"] == 5
    assert summary["display"] == "2 hr 5 min"


def test_summary_under_an_hour():
    assert summarize_study_time([], 45)["display"] == "45 min"


def test_summary_recent_sessions_newest_first():
    sessions, total = [], 0
    for i in range(7):
        sessions, total = record_study_session(sessions, total, 10 + i, NOW + timedelta(hours=i))

    summary = summarize_study_time(sessions, total)
    recent = summary["recent_sessions"]

    assert summary["session_count"] == 7
    assert len(recent) == RECENT_SESSIONS_SHOWN
    assert [s["duration"] for s in recent] == [16, 15, 14, 13, 12]
