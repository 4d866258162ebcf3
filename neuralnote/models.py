import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid():
    return str(uuid.uuid4())


def utcnow():
    """Naive UTC timestamp; every stored datetime is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() + "Z" if value else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    username = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    habits = db.relationship("Habit", backref="user", cascade="all, delete-orphan", lazy=True)
    entries = db.relationship("JournalEntry", backref="user", cascade="all, delete-orphan", lazy=True)

    def to_dict(self):
        return {"id": self.id, "username": self.username, "createdAt": _iso(self.created_at)}

    def __repr__(self):
        return f"<User id={self.id}>"


class Habit(db.Model):
    __tablename__ = "habits"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    completions = db.relationship("HabitCompletion", backref="habit", cascade="all, delete-orphan", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "description": self.description,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Habit id={self.id} name={self.name!r}>"


class JournalEntry(db.Model):
    __tablename__ = "journal_entries"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = db.Column(db.Text, nullable=False)

    # Filled from the Reflection on create/update
    summary = db.Column(db.Text, nullable=True)
    emotion = db.Column(db.String(50), nullable=True)
    affirmation = db.Column(db.Text, nullable=True)
    mood_score = db.Column(db.Float, nullable=True)  # VADER compound, e.g. 0.56

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    completions = db.relationship("HabitCompletion", backref="entry", cascade="all, delete-orphan", lazy=True)

    def apply_reflection(self, reflection):
        self.summary = reflection.summary
        self.emotion = reflection.emotion
        self.affirmation = reflection.affirmation

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "content": self.content,
            "summary": self.summary,
            "emotion": self.emotion,
            "affirmation": self.affirmation,
            "moodScore": float(self.mood_score) if self.mood_score is not None else None,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<JournalEntry id={self.id}>"


class HabitCompletion(db.Model):
    __tablename__ = "habit_completions"
    __table_args__ = (db.UniqueConstraint("habit_id", "journal_entry_id", name="uq_habit_entry"),)

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    habit_id = db.Column(db.String(36), db.ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    journal_entry_id = db.Column(
        db.String(36), db.ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False
    )
    completed_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<HabitCompletion habit={self.habit_id} entry={self.journal_entry_id}>"
