import json
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from neuralnote.dashboard import (
    DashboardAggregator,
    completion_rate,
    current_streak,
    local_date,
    weekly_activity,
)
from neuralnote.errors import ComputationError
from neuralnote.models import Habit, HabitCompletion, JournalEntry, User, db
from neuralnote.store import JournalStore

from conftest import FIXED_NOW

UTC = ZoneInfo("UTC")
TODAY = date(2026, 10, 19)


def _days_ago(n):
    return TODAY - timedelta(days=n)


def _stored(dt):
    """Aware datetime -> naive UTC, the way timestamps are stored."""
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


# ---------- Streak ----------

def test_streak_today_and_yesterday():
    assert current_streak({TODAY, _days_ago(1)}, TODAY) == 2


def test_streak_yesterday_only():
    assert current_streak({_days_ago(1)}, TODAY) == 1


def test_streak_yesterday_and_day_before():
    assert current_streak({_days_ago(1), _days_ago(2)}, TODAY) == 2


def test_streak_broken_by_two_empty_days():
    assert current_streak({_days_ago(3)}, TODAY) == 0


def test_streak_stops_at_first_gap():
    assert current_streak({TODAY, _days_ago(1), _days_ago(3), _days_ago(4)}, TODAY) == 2


def test_streak_empty():
    assert current_streak(set(), TODAY) == 0


# ---------- Weekly activity / helpers ----------

def test_weekly_activity_buckets():
    buckets = weekly_activity([TODAY, TODAY, _days_ago(2), _days_ago(9)], TODAY)

    assert [b["date"] for b in buckets] == [_days_ago(n).isoformat() for n in range(6, -1, -1)]
    assert buckets[0]["dayName"] == "Tue"
    assert buckets[-1]["dayName"] == "Mon"
    assert [b["entryCount"] for b in buckets] == [0, 0, 0, 0, 1, 0, 2]


def test_local_date_uses_configured_timezone():
    stored = datetime(2026, 10, 19, 2, 30)
    assert local_date(stored, UTC) == date(2026, 10, 19)
    assert local_date(stored, ZoneInfo("America/New_York")) == date(2026, 10, 18)
    assert local_date(stored, ZoneInfo("Asia/Tokyo")) == date(2026, 10, 19)


def test_completion_rate():
    assert completion_rate([]) == 0
    assert completion_rate([{"completionCount": 3}, {"completionCount": 0}]) == 1.5


# ---------- Aggregator over the database ----------

@pytest.fixture
def seeded(app):
    with app.app_context():
        user = User(username="sam")
        db.session.add(user)
        db.session.flush()

        exercise = Habit(user_id=user.id, name="Exercise", created_at=_stored(FIXED_NOW - timedelta(days=60)))
        reading = Habit(user_id=user.id, name="Reading", created_at=_stored(FIXED_NOW - timedelta(days=50)))
        db.session.add_all([exercise, reading])

        stamps = [
            (FIXED_NOW - timedelta(hours=1), "happy"),
            (FIXED_NOW - timedelta(days=1), "happy"),
            (FIXED_NOW - timedelta(days=3), "sad"),
            (FIXED_NOW - timedelta(days=3, hours=2), None),
            (FIXED_NOW - timedelta(days=40), "calm"),
        ]
        entries = []
        for created, emotion in stamps:
            entry = JournalEntry(user_id=user.id, content="entry", emotion=emotion, created_at=_stored(created))
            db.session.add(entry)
            entries.append(entry)
        db.session.flush()

        for entry in entries[:2]:
            db.session.add(HabitCompletion(habit_id=exercise.id, journal_entry_id=entry.id,
                                           completed_at=entry.created_at))
        db.session.add(HabitCompletion(habit_id=reading.id, journal_entry_id=entries[-1].id,
                                       completed_at=entries[-1].created_at))
        db.session.commit()
        yield SimpleNamespace(user_id=user.id, exercise_id=exercise.id, entry_ids=[e.id for e in entries])


def _aggregator(tz=UTC):
    return DashboardAggregator(JournalStore(), tz, clock=lambda: FIXED_NOW)


def test_dashboard_payload(app, seeded):
    with app.app_context():
        payload = _aggregator().build(seeded.user_id)

    assert payload["stats"] == {
        "totalEntries": 4,
        "totalHabits": 2,
        "currentStreak": 2,
        "habitCompletionRate": 1.0,
    }
    assert payload["emotionDistribution"] == {"happy": 2, "sad": 1}
    assert [(h["name"], h["completionCount"]) for h in payload["habitCompletions"]] == [
        ("Reading", 0),
        ("Exercise", 2),
    ]
    assert [b["entryCount"] for b in payload["weeklyActivity"]] == [0, 0, 0, 2, 0, 1, 1]

    recent = payload["recentEntries"]
    assert [e["id"] for e in recent] == seeded.entry_ids
    assert [h["id"] for h in recent[0]["completedHabits"]] == [seeded.exercise_id]
    assert recent[2]["completedHabits"] == []


def test_recent_limit_and_window(app, seeded):
    with app.app_context():
        payload = _aggregator().build(seeded.user_id, window_days=2, recent_limit=1)

    assert len(payload["recentEntries"]) == 1
    assert payload["stats"]["totalEntries"] == 2
    assert payload["stats"]["totalHabits"] == 2


def test_dashboard_is_idempotent(app, seeded):
    with app.app_context():
        first = json.dumps(_aggregator().build(seeded.user_id), sort_keys=True)
        second = json.dumps(_aggregator().build(seeded.user_id), sort_keys=True)
    assert first == second


def test_timezone_changes_calendar_buckets(app, seeded):
    # UTC+14 moves "now" and every seeded entry one calendar day later
    with app.app_context():
        payload = _aggregator(ZoneInfo("Pacific/Kiritimati")).build(seeded.user_id)

    assert payload["weeklyActivity"][-1]["date"] == "2026-10-20"
    assert [b["entryCount"] for b in payload["weeklyActivity"]] == [0, 0, 0, 2, 0, 1, 1]
    assert payload["stats"]["currentStreak"] == 2


def test_user_without_data(app):
    with app.app_context():
        user = User(username="empty")
        db.session.add(user)
        db.session.commit()
        payload = _aggregator().build(user.id)

    assert payload["stats"] == {
        "totalEntries": 0,
        "totalHabits": 0,
        "currentStreak": 0,
        "habitCompletionRate": 0,
    }
    assert payload["recentEntries"] == []
    assert payload["emotionDistribution"] == {}
    assert len(payload["weeklyActivity"]) == 7


class _BrokenStore:
    def entries_between(self, user_id, start, end):
        return [SimpleNamespace(id="x", created_at=None, emotion="happy")]

    def completion_counts(self, user_id, start, end):
        return []


def test_malformed_rows_raise_computation_error():
    aggregator = DashboardAggregator(_BrokenStore(), UTC, clock=lambda: FIXED_NOW)
    with pytest.raises(ComputationError):
        aggregator.build("user")


def test_window_past_year_one_starts_at_earliest_time(app, seeded):
    with app.app_context():
        payload = _aggregator().build(seeded.user_id, window_days=1_000_000)

    assert payload["stats"]["totalEntries"] == 5
    assert payload["emotionDistribution"] == {"happy": 2, "sad": 1, "calm": 1}


class _FailingStore:
    def entries_between(self, user_id, start, end):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))


def test_database_errors_raise_computation_error():
    aggregator = DashboardAggregator(_FailingStore(), UTC, clock=lambda: FIXED_NOW)
    with pytest.raises(ComputationError, match="Failed to fetch dashboard data"):
        aggregator.build("user")
