"""Queries over users, habits, entries and completions."""

from sqlalchemy import and_, func

from neuralnote.errors import NotFoundError
from neuralnote.models import HabitCompletion, Habit, JournalEntry, User, db


class JournalStore:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # ---------- Users ----------

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def require_user(self, user_id):
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_or_create_user(self, username):
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username)
            self.session.add(user)
            self.session.commit()
        return user

    # ---------- Habits ----------

    def require_habit(self, habit_id):
        habit = self.session.get(Habit, habit_id)
        if habit is None:
            raise NotFoundError("Habit not found")
        return habit

    def habits_for_user(self, user_id):
        return (
            Habit.query
            .filter_by(user_id=user_id)
            .order_by(Habit.created_at.desc(), Habit.id)
            .all()
        )

    def count_habits(self, user_id):
        return Habit.query.filter_by(user_id=user_id).count()

    def completion_counts(self, user_id, start, end):
        """Every habit of the user with its completions inside [start, end]."""
        completions = func.count(HabitCompletion.id)
        rows = (
            self.session.query(Habit, completions)
            .outerjoin(
                HabitCompletion,
                and_(
                    HabitCompletion.habit_id == Habit.id,
                    HabitCompletion.completed_at >= start,
                    HabitCompletion.completed_at <= end,
                ),
            )
            .filter(Habit.user_id == user_id)
            .group_by(Habit.id)
            .order_by(Habit.created_at.desc(), Habit.id)
            .all()
        )
        return [
            {"id": habit.id, "name": habit.name, "completionCount": int(count)}
            for habit, count in rows
        ]

    # ---------- Entries ----------

    def require_entry(self, entry_id):
        entry = self.session.get(JournalEntry, entry_id)
        if entry is None:
            raise NotFoundError("Journal entry not found")
        return entry

    def recent_entries(self, user_id, limit, offset=0):
        return (
            JournalEntry.query
            .filter_by(user_id=user_id)
            .order_by(JournalEntry.created_at.desc(), JournalEntry.id)
            .limit(limit)
            .offset(offset)
            .all()
        )

    def entries_between(self, user_id, start, end):
        return (
            JournalEntry.query
            .filter(
                JournalEntry.user_id == user_id,
                JournalEntry.created_at >= start,
                JournalEntry.created_at <= end,
            )
            .order_by(JournalEntry.created_at.desc(), JournalEntry.id)
            .all()
        )

    def completed_habits(self, entry_id):
        return (
            Habit.query
            .join(HabitCompletion, HabitCompletion.habit_id == Habit.id)
            .filter(HabitCompletion.journal_entry_id == entry_id)
            .order_by(Habit.created_at.desc(), Habit.id)
            .all()
        )

    # ---------- Completions ----------

    def find_completion(self, habit_id, entry_id):
        return HabitCompletion.query.filter_by(habit_id=habit_id, journal_entry_id=entry_id).first()

    def add_completion(self, habit_id, entry_id):
        """Create the (habit, entry) link, or return the one that exists."""
        existing = self.find_completion(habit_id, entry_id)
        if existing is not None:
            return existing
        completion = HabitCompletion(habit_id=habit_id, journal_entry_id=entry_id)
        self.session.add(completion)
        self.session.flush()
        return completion

    def replace_completions(self, entry, habit_ids):
        HabitCompletion.query.filter_by(journal_entry_id=entry.id).delete()
        for habit_id in habit_ids:
            self.add_completion(habit_id, entry.id)

    def toggle_completion(self, habit_id, entry_id):
        """Returns True when the habit is now marked completed for the entry."""
        existing = self.find_completion(habit_id, entry_id)
        if existing is not None:
            self.session.delete(existing)
            self.session.commit()
            return False
        self.add_completion(habit_id, entry_id)
        self.session.commit()
        return True

    # ---------- Application-wide counts ----------

    def totals(self):
        return {
            "users": User.query.count(),
            "entries": JournalEntry.query.count(),
            "habits": Habit.query.count(),
            "completions": HabitCompletion.query.count(),
        }

    def entries_since(self, since):
        return JournalEntry.query.filter(JournalEntry.created_at > since).count()

    def emotion_counts(self):
        rows = (
            self.session.query(JournalEntry.emotion, func.count(JournalEntry.id))
            .filter(JournalEntry.emotion.isnot(None))
            .group_by(JournalEntry.emotion)
            .order_by(JournalEntry.emotion)
            .all()
        )
        return {emotion: int(count) for emotion, count in rows}

    def users_with_habits(self):
        return self.session.query(func.count(func.distinct(Habit.user_id))).scalar() or 0
