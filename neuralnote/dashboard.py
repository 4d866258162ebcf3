"""
Dashboard statistics for one user.

All calendar arithmetic (streaks, weekly buckets) happens on local dates in
the configured timezone. Stored timestamps are naive UTC.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from neuralnote.errors import ComputationError

logger = logging.getLogger(__name__)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def local_date(timestamp: datetime, tz: ZoneInfo) -> date:
    """Calendar date of a stored timestamp in `tz`."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(tz).date()


def current_streak(entry_dates: Set[date], today: date) -> int:
    """
    Consecutive days with an entry, ending today.

    If today has no entry yet the streak may still end yesterday; any other
    gap stops the count.
    """
    if today in entry_dates:
        anchor = today
    elif today - timedelta(days=1) in entry_dates:
        anchor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    day = anchor
    while day in entry_dates:
        streak += 1
        day -= timedelta(days=1)
    return streak


def weekly_activity(entry_dates: Iterable[date], today: date) -> List[dict]:
    """Seven buckets, oldest (six days ago) first, ending today."""
    counts = {}
    for day in entry_dates:
        counts[day] = counts.get(day, 0) + 1

    buckets = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        buckets.append({
            "date": day.isoformat(),
            "dayName": DAY_NAMES[day.weekday()],
            "entryCount": counts.get(day, 0),
        })
    return buckets


def emotion_distribution(entries) -> dict:
    distribution = {}
    for entry in entries:
        if entry.emotion:
            distribution[entry.emotion] = distribution.get(entry.emotion, 0) + 1
    return distribution


def completion_rate(habit_completions: List[dict]) -> float:
    """Mean completions per habit; 0 with no habits."""
    if not habit_completions:
        return 0
    return sum(h["completionCount"] for h in habit_completions) / len(habit_completions)


class DashboardAggregator:
    """
    Read-only statistics over a user's stored journal.

    `store` provides the queries (see `neuralnote.store.JournalStore`);
    `clock` returns the current time as an aware datetime.
    """

    def __init__(
        self,
        store,
        tz: ZoneInfo,
        clock: Optional[Callable[[], datetime]] = None,
        window_days: int = 30,
        recent_limit: int = 5,
    ):
        self.store = store
        self.tz = tz
        self.clock = clock or utc_clock
        self.window_days = window_days
        self.recent_limit = recent_limit

    def _window(self, window_days):
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        end = now.astimezone(timezone.utc).replace(tzinfo=None)
        # Windows reaching past year 1 start at the earliest representable time
        if window_days >= (end - datetime.min).days:
            return now, datetime.min, end
        return now, end - timedelta(days=window_days), end

    def build(self, user_id, window_days=None, recent_limit=None) -> dict:
        window_days = self.window_days if window_days is None else window_days
        recent_limit = self.recent_limit if recent_limit is None else recent_limit
        try:
            return self._build(user_id, window_days, recent_limit)
        except (AttributeError, KeyError, TypeError, ValueError, SQLAlchemyError) as exc:
            logger.exception("Dashboard computation failed", extra={"user_id": user_id})
            raise ComputationError("Failed to fetch dashboard data") from exc

    def _build(self, user_id, window_days, recent_limit):
        now, start, end = self._window(window_days)
        today = now.astimezone(self.tz).date()

        # 1) Window-limited data
        entries = self.store.entries_between(user_id, start, end)
        habit_completions = self.store.completion_counts(user_id, start, end)
        entry_dates = [local_date(entry.created_at, self.tz) for entry in entries]

        # 2) Not window-limited
        recent = self.store.recent_entries(user_id, recent_limit)
        total_habits = self.store.count_habits(user_id)

        recent_entries = []
        for entry in recent:
            item = entry.to_dict()
            item["completedHabits"] = [h.to_dict() for h in self.store.completed_habits(entry.id)]
            recent_entries.append(item)

        return {
            "stats": {
                "totalEntries": len(entries),
                "totalHabits": total_habits,
                "currentStreak": current_streak(set(entry_dates), today),
                "habitCompletionRate": completion_rate(habit_completions),
            },
            "recentEntries": recent_entries,
            "emotionDistribution": emotion_distribution(entries),
            "habitCompletions": habit_completions,
            "weeklyActivity": weekly_activity(entry_dates, today),
        }
