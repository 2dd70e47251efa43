import sqlite3
import calendar
import datetime
import json
from contextlib import contextmanager
from typing import List, Tuple, Optional, Iterable

from config import YamlConfig
from settings_schema import validate_settings
from models import (
    Exercise,
    ExerciseModality,
    Session,
    SetEntry,
    TrainingPlan,
    PlanDay,
    PlannedExercise,
    WeightUnit,
)


def _to_iso(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_iso(value: Optional[str]) -> Optional[datetime.datetime]:
    return datetime.datetime.fromisoformat(value) if value else None


def _dump_list(items: Iterable[str]) -> str:
    return json.dumps([i for i in items if i])


def _load_list(value: Optional[str]) -> list[str]:
    return [str(v) for v in json.loads(value)] if value else []


def check_set_values(weight: float, reps: int, rpe: Optional[int] = None) -> None:
    """Raise ``ValueError`` when a set cannot be stored."""
    if reps <= 0:
        raise ValueError("reps must be positive")
    if weight < 0:
        raise ValueError("weight must be non-negative")
    if rpe is not None and not 1 <= rpe <= 10:
        raise ValueError("rpe must be between 1 and 10")


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "exercises": (
            """CREATE TABLE exercises (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    muscle_groups TEXT NOT NULL DEFAULT '[]',
                    modality TEXT NOT NULL DEFAULT 'other',
                    notes TEXT,
                    is_custom INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "muscle_groups",
                "modality",
                "notes",
                "is_custom",
                "created_at",
            ],
        ),
        "sessions": (
            """CREATE TABLE sessions (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    plan_day_name TEXT,
                    duration REAL,
                    session_rpe INTEGER,
                    notes TEXT,
                    pain_tags TEXT NOT NULL DEFAULT '[]',
                    completed_at TEXT
                );""",
            [
                "id",
                "date",
                "plan_day_name",
                "duration",
                "session_rpe",
                "notes",
                "pain_tags",
                "completed_at",
            ],
        ),
        "set_entries": (
            """CREATE TABLE set_entries (
                    id TEXT PRIMARY KEY,
                    exercise_id TEXT,
                    session_id TEXT,
                    weight REAL NOT NULL,
                    weight_unit TEXT NOT NULL DEFAULT 'lbs',
                    reps INTEGER NOT NULL,
                    rpe INTEGER,
                    notes TEXT,
                    timestamp TEXT NOT NULL,
                    order_index INTEGER NOT NULL DEFAULT 0
                );""",
            [
                "id",
                "exercise_id",
                "session_id",
                "weight",
                "weight_unit",
                "reps",
                "rpe",
                "notes",
                "timestamp",
                "order_index",
            ],
        ),
        "training_plans": (
            """CREATE TABLE training_plans (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    days_per_week INTEGER NOT NULL DEFAULT 3,
                    is_active INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    notes TEXT
                );""",
            ["id", "name", "days_per_week", "is_active", "created_at", "notes"],
        ),
        "plan_days": (
            """CREATE TABLE plan_days (
                    id TEXT PRIMARY KEY,
                    plan_id TEXT,
                    name TEXT NOT NULL,
                    order_index INTEGER NOT NULL DEFAULT 0
                );""",
            ["id", "plan_id", "name", "order_index"],
        ),
        "planned_exercises": (
            """CREATE TABLE planned_exercises (
                    id TEXT PRIMARY KEY,
                    plan_day_id TEXT,
                    exercise_name TEXT NOT NULL,
                    sets INTEGER NOT NULL DEFAULT 3,
                    reps TEXT NOT NULL DEFAULT '8-12',
                    notes TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    exercise_id TEXT
                );""",
            [
                "id",
                "plan_day_id",
                "exercise_name",
                "sets",
                "reps",
                "notes",
                "order_index",
                "exercise_id",
            ],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str = "liftlog.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._init_settings()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                def default_val(col: str) -> str:
                    if col in ("order_index", "is_custom", "is_active"):
                        return "0"
                    if col in ("muscle_groups", "pain_tags"):
                        return "'[]'"
                    if col == "modality":
                        return "'other'"
                    if col == "weight_unit":
                        return "'lbs'"
                    return "NULL"

                defaults = ", ".join(default_val(c) for c in missing)
                conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        conn.execute(f"DROP TABLE {table}_old;")

    def _init_settings(self) -> None:
        defaults = {
            "weight_unit": "lbs",
            "weight_increment": "5.0",
            "default_weight": "135.0",
            "default_reps": "5",
            "first_weekday": str(calendar.firstweekday()),
            "weekly_volume_weeks": "4",
            "one_rep_max_formula": "epley",
        }
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class SetEntryRepository(BaseRepository):
    """Repository for logged sets."""

    _COLUMNS = (
        "id, exercise_id, session_id, weight, weight_unit, reps, rpe, notes, timestamp, order_index"
    )

    @staticmethod
    def _row_to_entry(row: Tuple) -> SetEntry:
        sid, ex_id, sess_id, weight, unit, reps, rpe, notes, ts, order = row
        return SetEntry(
            id=sid,
            exercise_id=ex_id,
            session_id=sess_id,
            weight=float(weight),
            weight_unit=WeightUnit(unit),
            reps=int(reps),
            rpe=int(rpe) if rpe is not None else None,
            notes=notes,
            timestamp=_from_iso(ts),
            order_index=int(order),
        )

    def add(self, entry: SetEntry) -> str:
        check_set_values(entry.weight, entry.reps, entry.rpe)
        self.execute(
            f"INSERT INTO set_entries ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);",
            (
                entry.id,
                entry.exercise_id,
                entry.session_id,
                float(entry.weight),
                entry.weight_unit.value,
                int(entry.reps),
                entry.rpe,
                entry.notes,
                _to_iso(entry.timestamp),
                int(entry.order_index),
            ),
        )
        return entry.id

    def fetch_detail(self, set_id: str) -> SetEntry:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM set_entries WHERE id = ?;", (set_id,)
        )
        if not rows:
            raise ValueError("set not found")
        return self._row_to_entry(rows[0])

    def fetch_for_session(self, session_id: str) -> List[SetEntry]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM set_entries WHERE session_id = ? ORDER BY order_index;",
            (session_id,),
        )
        return [self._row_to_entry(r) for r in rows]

    def fetch_for_sessions(self, session_ids: list[str]) -> dict[str, List[SetEntry]]:
        result: dict[str, List[SetEntry]] = {sid: [] for sid in session_ids}
        if not session_ids:
            return result
        placeholders = ",".join("?" for _ in session_ids)
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM set_entries WHERE session_id IN ({placeholders}) ORDER BY order_index;",
            tuple(session_ids),
        )
        for row in rows:
            entry = self._row_to_entry(row)
            result[entry.session_id].append(entry)
        return result

    def fetch_for_exercise(self, exercise_id: str) -> List[SetEntry]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM set_entries WHERE exercise_id = ? ORDER BY timestamp;",
            (exercise_id,),
        )
        return [self._row_to_entry(r) for r in rows]

    def count(self) -> int:
        rows = self.fetch_all("SELECT COUNT(*) FROM set_entries;")
        return int(rows[0][0])

    def delete_for_session(self, session_id: str) -> None:
        self.execute("DELETE FROM set_entries WHERE session_id = ?;", (session_id,))

    def delete_for_exercise(self, exercise_id: str) -> None:
        self.execute("DELETE FROM set_entries WHERE exercise_id = ?;", (exercise_id,))


class ExerciseRepository(BaseRepository):
    """Repository for the exercise library."""

    _COLUMNS = "id, name, muscle_groups, modality, notes, is_custom, created_at"

    def __init__(
        self, db_path: str = "liftlog.db", sets: Optional[SetEntryRepository] = None
    ) -> None:
        super().__init__(db_path)
        self.sets = sets or SetEntryRepository(db_path)

    @staticmethod
    def _row_to_exercise(row: Tuple) -> Exercise:
        eid, name, muscles, modality, notes, is_custom, created = row
        return Exercise(
            id=eid,
            name=name,
            muscle_groups=_load_list(muscles),
            modality=ExerciseModality.parse(modality),
            notes=notes,
            is_custom=bool(is_custom),
            created_at=_from_iso(created),
        )

    def add(self, exercise: Exercise) -> str:
        if not exercise.name:
            raise ValueError("name cannot be empty")
        self.execute(
            f"INSERT INTO exercises ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                exercise.id,
                exercise.name,
                _dump_list(exercise.muscle_groups),
                exercise.modality.value,
                exercise.notes,
                int(exercise.is_custom),
                _to_iso(exercise.created_at),
            ),
        )
        return exercise.id

    def update(self, exercise: Exercise) -> None:
        if not exercise.name:
            raise ValueError("name cannot be empty")
        self.fetch_detail(exercise.id)
        self.execute(
            "UPDATE exercises SET name = ?, muscle_groups = ?, modality = ?, notes = ?, is_custom = ? WHERE id = ?;",
            (
                exercise.name,
                _dump_list(exercise.muscle_groups),
                exercise.modality.value,
                exercise.notes,
                int(exercise.is_custom),
                exercise.id,
            ),
        )

    def fetch_exercises(
        self,
        modality: Optional[ExerciseModality] = None,
        query: Optional[str] = None,
    ) -> List[Exercise]:
        sql = f"SELECT {self._COLUMNS} FROM exercises WHERE 1=1"
        params: list[str] = []
        if modality is not None:
            sql += " AND modality = ?"
            params.append(modality.value)
        if query:
            sql += " AND lower(name) LIKE ?"
            params.append(f"%{query.lower()}%")
        sql += " ORDER BY name;"
        return [self._row_to_exercise(r) for r in self.fetch_all(sql, tuple(params))]

    def fetch_detail(self, exercise_id: str) -> Exercise:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercises WHERE id = ?;", (exercise_id,)
        )
        if not rows:
            raise ValueError("exercise not found")
        return self._row_to_exercise(rows[0])

    def fetch_by_name(self, name: str) -> Optional[Exercise]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercises WHERE name = ? ORDER BY created_at LIMIT 1;",
            (name,),
        )
        return self._row_to_exercise(rows[0]) if rows else None

    def fetch_many(self, exercise_ids: Iterable[str]) -> dict[str, Exercise]:
        ids = sorted({i for i in exercise_ids if i})
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercises WHERE id IN ({placeholders});",
            tuple(ids),
        )
        return {r[0]: self._row_to_exercise(r) for r in rows}

    def count(self) -> int:
        rows = self.fetch_all("SELECT COUNT(*) FROM exercises;")
        return int(rows[0][0])

    def delete(self, exercise_id: str) -> None:
        self.fetch_detail(exercise_id)
        self.sets.delete_for_exercise(exercise_id)
        self.execute("DELETE FROM exercises WHERE id = ?;", (exercise_id,))


class SessionRepository(BaseRepository):
    """Repository for workout sessions and their owned sets."""

    _COLUMNS = (
        "id, date, plan_day_name, duration, session_rpe, notes, pain_tags, completed_at"
    )

    def __init__(
        self, db_path: str = "liftlog.db", sets: Optional[SetEntryRepository] = None
    ) -> None:
        super().__init__(db_path)
        self.sets = sets or SetEntryRepository(db_path)

    @staticmethod
    def _row_to_session(row: Tuple) -> Session:
        sid, date, day_name, duration, rpe, notes, tags, completed = row
        return Session(
            id=sid,
            date=_from_iso(date),
            plan_day_name=day_name,
            duration=float(duration) if duration is not None else None,
            session_rpe=int(rpe) if rpe is not None else None,
            notes=notes,
            pain_tags=_load_list(tags),
            completed_at=_from_iso(completed),
        )

    def add(self, session: Session) -> str:
        self.execute(
            f"INSERT INTO sessions ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?);",
            (
                session.id,
                _to_iso(session.date),
                session.plan_day_name,
                session.duration,
                session.session_rpe,
                session.notes,
                _dump_list(session.pain_tags),
                _to_iso(session.completed_at),
            ),
        )
        return session.id

    def update(self, session: Session) -> None:
        """Write the scalar fields of ``session``; sets are written by the logger."""
        self.execute(
            "UPDATE sessions SET date = ?, plan_day_name = ?, duration = ?, session_rpe = ?, notes = ?, pain_tags = ?, completed_at = ? WHERE id = ?;",
            (
                _to_iso(session.date),
                session.plan_day_name,
                session.duration,
                session.session_rpe,
                session.notes,
                _dump_list(session.pain_tags),
                _to_iso(session.completed_at),
                session.id,
            ),
        )

    def set_duration(self, session_id: str, duration: Optional[float]) -> None:
        self.execute(
            "UPDATE sessions SET duration = ? WHERE id = ?;",
            (duration, session_id),
        )

    def _attach_sets(self, sessions: List[Session]) -> List[Session]:
        by_session = self.sets.fetch_for_sessions([s.id for s in sessions])
        for session in sessions:
            session.sets = by_session.get(session.id, [])
        return sessions

    def fetch_detail(self, session_id: str) -> Session:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM sessions WHERE id = ?;", (session_id,)
        )
        if not rows:
            raise ValueError("session not found")
        return self._attach_sets([self._row_to_session(rows[0])])[0]

    def fetch_sessions(
        self,
        completed_only: bool = False,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> List[Session]:
        query = f"SELECT {self._COLUMNS} FROM sessions"
        params: list[str | int] = []
        where_clauses: list[str] = []
        if completed_only:
            where_clauses.append("completed_at IS NOT NULL")
        if start_date:
            where_clauses.append("date >= ?")
            params.append(start_date)
        if end_date:
            where_clauses.append("date < ?")
            params.append(end_date)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        order = "DESC" if descending else "ASC"
        query += f" ORDER BY date {order}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        query += ";"
        sessions = [self._row_to_session(r) for r in self.fetch_all(query, tuple(params))]
        return self._attach_sets(sessions)

    def fetch_last_completed(self) -> Optional[Session]:
        sessions = self.fetch_sessions(completed_only=True, limit=1)
        return sessions[0] if sessions else None

    def count(self, completed_only: bool = False) -> int:
        query = "SELECT COUNT(*) FROM sessions"
        if completed_only:
            query += " WHERE completed_at IS NOT NULL"
        rows = self.fetch_all(query + ";")
        return int(rows[0][0])

    def delete(self, session_id: str) -> None:
        self.sets.delete_for_session(session_id)
        self.execute("DELETE FROM sessions WHERE id = ?;", (session_id,))


class PlannedExerciseRepository(BaseRepository):
    """Repository for exercises prescribed on a plan day."""

    _COLUMNS = "id, plan_day_id, exercise_name, sets, reps, notes, order_index, exercise_id"

    def add(self, planned: PlannedExercise) -> str:
        if planned.sets <= 0:
            raise ValueError("sets must be positive")
        self.execute(
            f"INSERT INTO planned_exercises ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?);",
            (
                planned.id,
                planned.plan_day_id,
                planned.exercise_name,
                int(planned.sets),
                planned.reps,
                planned.notes,
                int(planned.order_index),
                planned.exercise_id,
            ),
        )
        return planned.id

    def fetch_for_day(self, plan_day_id: str) -> List[PlannedExercise]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM planned_exercises WHERE plan_day_id = ? ORDER BY order_index;",
            (plan_day_id,),
        )
        return [
            PlannedExercise(
                id=pid,
                plan_day_id=day_id,
                exercise_name=name,
                sets=int(sets),
                reps=reps,
                notes=notes,
                order_index=int(order),
                exercise_id=ex_id,
            )
            for pid, day_id, name, sets, reps, notes, order, ex_id in rows
        ]

    def delete_for_day(self, plan_day_id: str) -> None:
        self.execute(
            "DELETE FROM planned_exercises WHERE plan_day_id = ?;", (plan_day_id,)
        )


class PlanDayRepository(BaseRepository):
    """Repository for the days of a training plan."""

    def __init__(
        self,
        db_path: str = "liftlog.db",
        exercises: Optional[PlannedExerciseRepository] = None,
    ) -> None:
        super().__init__(db_path)
        self.exercises = exercises or PlannedExerciseRepository(db_path)

    def add(self, day: PlanDay) -> str:
        if not day.name:
            raise ValueError("day name cannot be empty")
        self.execute(
            "INSERT INTO plan_days (id, plan_id, name, order_index) VALUES (?, ?, ?, ?);",
            (day.id, day.plan_id, day.name, int(day.order_index)),
        )
        for planned in day.exercises:
            planned.plan_day_id = day.id
            self.exercises.add(planned)
        return day.id

    def fetch_for_plan(self, plan_id: str) -> List[PlanDay]:
        rows = self.fetch_all(
            "SELECT id, plan_id, name, order_index FROM plan_days WHERE plan_id = ? ORDER BY order_index;",
            (plan_id,),
        )
        return [
            PlanDay(
                id=did,
                plan_id=pid,
                name=name,
                order_index=int(order),
                exercises=self.exercises.fetch_for_day(did),
            )
            for did, pid, name, order in rows
        ]

    def fetch_detail(self, day_id: str) -> PlanDay:
        rows = self.fetch_all(
            "SELECT id, plan_id, name, order_index FROM plan_days WHERE id = ?;",
            (day_id,),
        )
        if not rows:
            raise ValueError("plan day not found")
        did, pid, name, order = rows[0]
        return PlanDay(
            id=did,
            plan_id=pid,
            name=name,
            order_index=int(order),
            exercises=self.exercises.fetch_for_day(did),
        )

    def rename(self, day_id: str, name: str) -> None:
        if not name:
            raise ValueError("day name cannot be empty")
        self.fetch_detail(day_id)
        self.execute("UPDATE plan_days SET name = ? WHERE id = ?;", (name, day_id))

    def delete(self, day_id: str) -> None:
        self.exercises.delete_for_day(day_id)
        self.execute("DELETE FROM plan_days WHERE id = ?;", (day_id,))

    def delete_for_plan(self, plan_id: str) -> None:
        for (day_id,) in self.fetch_all(
            "SELECT id FROM plan_days WHERE plan_id = ?;", (plan_id,)
        ):
            self.delete(day_id)


class TrainingPlanRepository(BaseRepository):
    """Repository for training plans including their days."""

    _COLUMNS = "id, name, days_per_week, is_active, created_at, notes"

    def __init__(
        self, db_path: str = "liftlog.db", days: Optional[PlanDayRepository] = None
    ) -> None:
        super().__init__(db_path)
        self.days = days or PlanDayRepository(db_path)

    def _row_to_plan(self, row: Tuple) -> TrainingPlan:
        pid, name, days_per_week, active, created, notes = row
        return TrainingPlan(
            id=pid,
            name=name,
            days_per_week=int(days_per_week),
            is_active=bool(active),
            created_at=_from_iso(created),
            notes=notes,
            days=self.days.fetch_for_plan(pid),
        )

    def add(self, plan: TrainingPlan) -> str:
        if not plan.name:
            raise ValueError("plan name cannot be empty")
        self.execute(
            f"INSERT INTO training_plans ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?);",
            (
                plan.id,
                plan.name,
                int(plan.days_per_week),
                int(plan.is_active),
                _to_iso(plan.created_at),
                plan.notes,
            ),
        )
        for day in plan.days:
            day.plan_id = plan.id
            self.days.add(day)
        return plan.id

    def fetch_plans(self) -> List[TrainingPlan]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM training_plans ORDER BY created_at DESC;"
        )
        return [self._row_to_plan(r) for r in rows]

    def fetch_detail(self, plan_id: str) -> TrainingPlan:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM training_plans WHERE id = ?;", (plan_id,)
        )
        if not rows:
            raise ValueError("plan not found")
        return self._row_to_plan(rows[0])

    def fetch_active(self) -> Optional[TrainingPlan]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM training_plans WHERE is_active = 1 ORDER BY created_at DESC LIMIT 1;"
        )
        return self._row_to_plan(rows[0]) if rows else None

    def set_active(self, plan_id: str, active: bool = True) -> None:
        self.execute(
            "UPDATE training_plans SET is_active = ? WHERE id = ?;",
            (int(active), plan_id),
        )

    def deactivate_all(self, except_id: Optional[str] = None) -> None:
        if except_id is None:
            self.execute("UPDATE training_plans SET is_active = 0;")
        else:
            self.execute(
                "UPDATE training_plans SET is_active = 0 WHERE id != ?;",
                (except_id,),
            )

    def count_active(self) -> int:
        rows = self.fetch_all("SELECT COUNT(*) FROM training_plans WHERE is_active = 1;")
        return int(rows[0][0])

    def delete(self, plan_id: str) -> None:
        self.fetch_detail(plan_id)
        self.days.delete_for_plan(plan_id)
        self.execute("DELETE FROM training_plans WHERE id = ?;", (plan_id,))


class SettingsRepository(BaseRepository):
    """Repository for user preferences synchronized with YAML."""

    _TEXT_KEYS = {"weight_unit", "one_rep_max_formula"}

    def __init__(
        self, db_path: str = "liftlog.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, float | str] = {}
        for k, v in rows:
            if k in self._TEXT_KEYS:
                result[k] = v
                continue
            try:
                result[k] = float(v)
            except ValueError:
                result[k] = v
        return result

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get_text(key, str(default)))
        except ValueError:
            return default

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_text(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def set_float(self, key: str, value: float) -> None:
        self.set_text(key, str(value))

    def set_int(self, key: str, value: int) -> None:
        self.set_text(key, str(value))

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()
