import logging
import os
import time
from datetime import datetime, timedelta, timezone

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_cors import CORS

from neuralnote.config import load_settings
from neuralnote.dashboard import DashboardAggregator, utc_clock
from neuralnote.errors import ValidationError, register_error_handlers
from neuralnote.gpt_service import build_enrichment
from neuralnote.logging_config import setup_logging
from neuralnote.models import Habit, JournalEntry, db
from neuralnote.reflection import ReflectionOrchestrator
from neuralnote.sentiment_service import mood_score
from neuralnote.store import JournalStore

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__)


class Services:
    """Long-lived collaborators shared by every request."""

    def __init__(self, settings, enrichment, clock, rng=None):
        self.settings = settings
        self.clock = clock
        self.orchestrator = ReflectionOrchestrator(enrichment=enrichment, rng=rng)
        self.started_at = time.monotonic()

    def aggregator(self, store):
        return DashboardAggregator(
            store,
            self.settings.tzinfo,
            clock=self.clock,
            window_days=self.settings.window_days,
            recent_limit=self.settings.recent_limit,
        )


def services() -> Services:
    return current_app.extensions["neuralnote"]


# ---------- Request helpers ----------

def _json_body():
    return request.get_json(silent=True) or {}


def _require_string(value, message):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _optional_string(value):
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _int_arg(name, default, minimum=0):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer") from None
    if value < minimum:
        raise ValidationError(f"'{name}' must be at least {minimum}")
    return value


def _date_arg(name, end_of_day=False):
    """Parse an ISO date or datetime query argument into naive UTC."""
    raw = request.args.get(name, "").strip()
    try:
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"'{name}' must be an ISO date") from None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    elif end_of_day and "T" not in raw and " " not in raw:
        # A bare end date covers that whole day
        value = value.replace(hour=23, minute=59, second=59, microsecond=999999)
    return value


def _habit_refs(raw):
    """Validate the `habits` list of a reflection request."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("'habits' must be a list")
    habits = []
    for item in raw:
        if not isinstance(item, dict) or item.get("id") is None or not isinstance(item.get("name"), str):
            raise ValidationError("Each habit needs an 'id' and a 'name'")
        habits.append({"id": str(item["id"]), "name": item["name"]})
    return habits


def _entry_payload(store, entry):
    data = entry.to_dict()
    data["completedHabits"] = [h.to_dict() for h in store.completed_habits(entry.id)]
    return data


# ---------- Health & debug ----------

@api.route("/health")
def health():
    """Simple health check + DB connectivity test."""
    db_ok = True
    try:
        with db.engine.connect() as conn:
            conn.execute(db.text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        db_ok = False
    return jsonify({
        "status": "ok",
        "dbOk": db_ok,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200


@api.route("/api/debug/stats")
def debug_stats():
    """Which enrichment provider is active, without leaking the key."""
    settings = services().settings
    enabled = settings.enrichment_enabled
    return jsonify({
        "ai": {
            "provider": settings.ai_provider if enabled else "local",
            "enabled": enabled,
            "hasApiKey": bool(settings.api_key),
            "apiKeyPreview": settings.api_key[:10] + "..." if settings.api_key else "Not set",
            "model": settings.model if enabled else "Local fallback",
        },
        "timezone": settings.timezone,
        "uptime": round(time.monotonic() - services().started_at, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200


@api.route("/init-db")
def init_db():
    """Optional: safe-guarded table creation endpoint (disable in prod)."""
    if not services().settings.allow_init_db:
        return jsonify({"error": "init disabled"}), 403
    db.create_all()
    return jsonify({"ok": True, "message": "Tables created"}), 200


# ---------- Users ----------

@api.route("/api/users", methods=["POST"])
def create_user():
    """Find or create a user by username."""
    username = _require_string(_json_body().get("username"), "Username is required")
    user = JournalStore().find_or_create_user(username)
    return jsonify(user.to_dict()), 201


@api.route("/api/users/<user_id>", methods=["GET"])
def get_user(user_id):
    return jsonify(JournalStore().require_user(user_id).to_dict()), 200


# ---------- Habits ----------

@api.route("/api/habits/user/<user_id>", methods=["GET"])
def list_habits(user_id):
    store = JournalStore()
    store.require_user(user_id)
    return jsonify([h.to_dict() for h in store.habits_for_user(user_id)]), 200


@api.route("/api/habits/user/<user_id>/completions", methods=["GET"])
def habit_completions(user_id):
    """Completion counts per habit between `startDate` and `endDate`."""
    if not request.args.get("startDate") or not request.args.get("endDate"):
        raise ValidationError("Start date and end date are required")
    store = JournalStore()
    store.require_user(user_id)
    start = _date_arg("startDate")
    end = _date_arg("endDate", end_of_day=True)
    if start > end:
        raise ValidationError("Start date must not be after end date")
    return jsonify(store.completion_counts(user_id, start, end)), 200


@api.route("/api/habits", methods=["POST"])
def create_habit():
    data = _json_body()
    if not data.get("userId"):
        raise ValidationError("User ID is required")
    name = _require_string(data.get("name"), "Habit name is required")

    store = JournalStore()
    store.require_user(data["userId"])
    habit = Habit(user_id=data["userId"], name=name, description=_optional_string(data.get("description")))
    db.session.add(habit)
    db.session.commit()
    return jsonify(habit.to_dict()), 201


@api.route("/api/habits/<habit_id>", methods=["GET"])
def get_habit(habit_id):
    return jsonify(JournalStore().require_habit(habit_id).to_dict()), 200


@api.route("/api/habits/<habit_id>", methods=["PUT"])
def update_habit(habit_id):
    data = _json_body()
    name = _require_string(data.get("name"), "Habit name is required")
    habit = JournalStore().require_habit(habit_id)
    habit.name = name
    habit.description = _optional_string(data.get("description"))
    db.session.commit()
    return jsonify(habit.to_dict()), 200


@api.route("/api/habits/<habit_id>", methods=["DELETE"])
def delete_habit(habit_id):
    habit = JournalStore().require_habit(habit_id)
    db.session.delete(habit)
    db.session.commit()
    return "", 204


# ---------- Journal ----------

@api.route("/api/journal/user/<user_id>", methods=["GET"])
def list_entries(user_id):
    """List a user's entries (latest first) with their completed habits."""
    store = JournalStore()
    store.require_user(user_id)
    limit = _int_arg("limit", 50, minimum=1)
    offset = _int_arg("offset", 0)
    entries = store.recent_entries(user_id, limit, offset)
    return jsonify([_entry_payload(store, e) for e in entries]), 200


@api.route("/api/journal", methods=["POST"])
def create_entry():
    """Create one journal entry: reflect + sentiment + save + habit completions."""
    data = _json_body()
    if not data.get("userId"):
        raise ValidationError("User ID is required")
    content = _require_string(data.get("content"), "Journal entry content is required")

    store = JournalStore()
    store.require_user(data["userId"])

    # 1) Reflection against the user's habits
    reflection = services().orchestrator.reflect(content, store.habits_for_user(data["userId"]))

    # 2) Save entry with flattened reflection
    entry = JournalEntry(user_id=data["userId"], content=content, mood_score=mood_score(content))
    entry.apply_reflection(reflection)
    db.session.add(entry)
    db.session.flush()

    # 3) Record detected habits
    store.replace_completions(entry, reflection.detected_habits)
    db.session.commit()

    return jsonify(_entry_payload(store, entry)), 201


@api.route("/api/journal/<entry_id>", methods=["GET"])
def get_entry(entry_id):
    store = JournalStore()
    return jsonify(_entry_payload(store, store.require_entry(entry_id))), 200


@api.route("/api/journal/<entry_id>", methods=["PUT"])
def update_entry(entry_id):
    """Replace content, recompute the reflection and the detected habits."""
    content = _require_string(_json_body().get("content"), "Journal entry content is required")

    store = JournalStore()
    entry = store.require_entry(entry_id)
    reflection = services().orchestrator.reflect(content, store.habits_for_user(entry.user_id))

    entry.content = content
    entry.mood_score = mood_score(content)
    entry.apply_reflection(reflection)
    store.replace_completions(entry, reflection.detected_habits)
    db.session.commit()

    return jsonify(_entry_payload(store, entry)), 200


@api.route("/api/journal/<entry_id>", methods=["DELETE"])
def delete_entry(entry_id):
    entry = JournalStore().require_entry(entry_id)
    db.session.delete(entry)
    db.session.commit()
    return "", 204


@api.route("/api/journal/<entry_id>/habits/<habit_id>/toggle", methods=["POST"])
def toggle_habit(entry_id, habit_id):
    store = JournalStore()
    store.require_entry(entry_id)
    habit = store.require_habit(habit_id)
    completed = store.toggle_completion(habit_id, entry_id)
    return jsonify({"completed": completed, "habit": habit.to_dict()}), 200


# ---------- Reflection & dashboard ----------

@api.route("/api/reflect", methods=["POST"])
def reflect():
    """Stateless reflection for arbitrary text; nothing is stored."""
    data = _json_body()
    content = _require_string(data.get("content"), "Journal entry content is required")
    habits = _habit_refs(data.get("habits"))
    return jsonify(services().orchestrator.reflect(content, habits).to_dict()), 200


@api.route("/api/dashboard/<user_id>", methods=["GET"])
def dashboard(user_id):
    settings = services().settings
    window_days = _int_arg("windowDays", settings.window_days, minimum=1)
    recent_limit = _int_arg("recentLimit", settings.recent_limit)

    store = JournalStore()
    user = store.require_user(user_id)
    payload = services().aggregator(store).build(user_id, window_days, recent_limit)
    payload["user"] = user.to_dict()
    return jsonify(payload), 200


@api.route("/api/stats", methods=["GET"])
def app_stats():
    """Application-wide counts for monitoring engagement."""
    store = JournalStore()
    totals = store.totals()
    week_ago = services().clock().astimezone(timezone.utc).replace(tzinfo=None) - timedelta(days=7)

    users_with_habits = store.users_with_habits()
    avg_habits = totals["habits"] / users_with_habits if users_with_habits else 0
    avg_entries = totals["entries"] / totals["users"] if totals["users"] else 0
    rate = totals["completions"] / totals["habits"] if totals["habits"] else 0

    return jsonify({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "summary": {
            "totalUsers": totals["users"],
            "totalEntries": totals["entries"],
            "totalHabits": totals["habits"],
            "totalCompletions": totals["completions"],
            "entriesLastWeek": store.entries_since(week_ago),
        },
        "insights": {
            "avgHabitsPerUser": round(avg_habits, 2),
            "emotionDistribution": store.emotion_counts(),
            "avgEntriesPerUser": round(avg_entries, 2),
            "completionRate": round(rate, 2),
        },
    }), 200


# ---------- App factory ----------

def _register_request_logging(app):
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        if started is not None:
            duration_ms = int((time.perf_counter() - started) * 1000)
            logger.info("%s %s %s - %sms", request.method, request.path, response.status_code, duration_ms)
        return response


def create_app(settings=None, enrichment=None, clock=None, rng=None):
    """
    Build the Flask app.

    Args:
        settings: Settings; read from the environment when omitted
        enrichment: enrichment collaborator; chosen from settings when omitted
        clock: callable returning the current aware datetime (dashboard, stats)
        rng: random.Random used to pick template affirmations
    """
    settings = settings or load_settings()
    settings.tzinfo  # raises ConfigurationError on a bad timezone

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = settings.database_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    db.init_app(app)
    with app.app_context():
        db.create_all()

    # --- CORS (allow the deployed frontend origin if provided) ---
    if settings.frontend_origin:
        CORS(app, resources={r"/*": {"origins": [settings.frontend_origin]}})
    else:
        # Dev fallback: allow all
        CORS(app)

    app.extensions["neuralnote"] = Services(
        settings,
        enrichment if enrichment is not None else build_enrichment(settings),
        clock or utc_clock,
        rng,
    )
    register_error_handlers(app)
    _register_request_logging(app)
    app.register_blueprint(api)
    return app


def main():
    settings = load_settings()
    setup_logging(settings.log_level, json_output=settings.log_format == "json")
    app = create_app(settings)
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))


if __name__ == "__main__":
    main()
