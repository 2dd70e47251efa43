import os
import sys
import sqlite3
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import (
    Database,
    ExerciseRepository,
    PlanDayRepository,
    PlannedExerciseRepository,
    SessionRepository,
    SetEntryRepository,
    TrainingPlanRepository,
)
from models import (
    Exercise,
    ExerciseModality,
    PlanDay,
    PlannedExercise,
    Session,
    SetEntry,
    TrainingPlan,
    WeightUnit,
)


class RepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_repositories.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.sets = SetEntryRepository(self.db_path)
        self.exercises = ExerciseRepository(self.db_path, self.sets)
        self.sessions = SessionRepository(self.db_path, self.sets)
        self.planned = PlannedExerciseRepository(self.db_path)
        self.days = PlanDayRepository(self.db_path, self.planned)
        self.plans = TrainingPlanRepository(self.db_path, self.days)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def _session_with_sets(self, exercise: Exercise, count: int) -> Session:
        session = Session(date=datetime.datetime(2026, 10, 12, 18, 0))
        self.sessions.add(session)
        for i in range(count):
            self.sets.add(
                SetEntry(
                    weight=100.0,
                    reps=5,
                    exercise_id=exercise.id,
                    session_id=session.id,
                    order_index=i,
                )
            )
        return session

    def test_exercise_roundtrip_and_filters(self) -> None:
        bench = Exercise(
            name="Bench Press",
            muscle_groups=["chest", "triceps"],
            modality=ExerciseModality.BARBELL,
        )
        self.exercises.add(bench)
        self.exercises.add(Exercise(name="Plank", modality=ExerciseModality.BODYWEIGHT))

        loaded = self.exercises.fetch_detail(bench.id)
        self.assertEqual(loaded.name, "Bench Press")
        self.assertEqual(loaded.muscle_groups, ["chest", "triceps"])
        self.assertEqual(loaded.modality, ExerciseModality.BARBELL)
        self.assertFalse(loaded.is_custom)

        barbell = self.exercises.fetch_exercises(ExerciseModality.BARBELL)
        self.assertEqual([e.name for e in barbell], ["Bench Press"])
        self.assertEqual(
            [e.name for e in self.exercises.fetch_exercises(query="pla")], ["Plank"]
        )
        self.assertIsNone(self.exercises.fetch_by_name("bench press"))
        with self.assertRaises(ValueError):
            self.exercises.add(Exercise(name=""))
        with self.assertRaises(ValueError):
            self.exercises.fetch_detail("missing")

    def test_list_columns_keep_separator_characters(self) -> None:
        grip = Exercise(name="Grip Work", muscle_groups=["forearms|fingers", "wrist"])
        self.exercises.add(grip)
        self.assertEqual(
            self.exercises.fetch_detail(grip.id).muscle_groups,
            ["forearms|fingers", "wrist"],
        )

        session = Session(duration=600.0, pain_tags=["Left knee | sharp", "Neck"])
        self.sessions.add(session)
        self.assertEqual(
            self.sessions.fetch_detail(session.id).pain_tags,
            ["Left knee | sharp", "Neck"],
        )
        self.assertEqual(self.sessions.fetch_detail(session.id).duration, 600.0)
        self.sessions.set_duration(session.id, 900.0)
        loaded = self.sessions.fetch_detail(session.id)
        self.assertEqual(loaded.duration, 900.0)
        self.assertEqual(loaded.pain_tags, ["Left knee | sharp", "Neck"])

    def test_set_validation(self) -> None:
        with self.assertRaises(ValueError):
            self.sets.add(SetEntry(weight=100.0, reps=0))
        with self.assertRaises(ValueError):
            self.sets.add(SetEntry(weight=-5.0, reps=5))
        with self.assertRaises(ValueError):
            self.sets.add(SetEntry(weight=100.0, reps=5, rpe=11))
        self.assertEqual(self.sets.count(), 0)

        entry = SetEntry(weight=62.5, reps=3, weight_unit=WeightUnit.KG, rpe=9)
        self.sets.add(entry)
        loaded = self.sets.fetch_detail(entry.id)
        self.assertEqual(loaded.display_weight, "62.5 kg")
        self.assertEqual(loaded.rpe, 9)
        self.assertIsNone(loaded.session_id)

    def test_deleting_exercise_removes_its_sets(self) -> None:
        bench = Exercise(name="Bench Press")
        self.exercises.add(bench)
        session = self._session_with_sets(bench, 3)
        self.exercises.delete(bench.id)
        self.assertEqual(self.sets.count(), 0)
        self.assertEqual(self.sessions.fetch_detail(session.id).sets, [])

    def test_deleting_session_removes_its_sets(self) -> None:
        bench = Exercise(name="Bench Press")
        self.exercises.add(bench)
        session = self._session_with_sets(bench, 2)
        loose = SetEntry(weight=45.0, reps=10, exercise_id=bench.id)
        self.sets.add(loose)

        self.assertEqual(len(self.sessions.fetch_detail(session.id).sets), 2)
        self.sessions.delete(session.id)
        self.assertEqual(self.sessions.count(), 0)
        self.assertEqual(self.sets.count(), 1)
        self.assertEqual(self.exercises.count(), 1)
        self.assertEqual(self.sets.fetch_detail(loose.id).exercise_id, bench.id)

    def test_session_queries(self) -> None:
        older = Session(
            date=datetime.datetime(2026, 10, 1, 9, 0),
            plan_day_name="Day 1",
            completed_at=datetime.datetime(2026, 10, 1, 10, 0),
        )
        newer = Session(
            date=datetime.datetime(2026, 10, 8, 9, 0),
            plan_day_name="Day 2",
            completed_at=datetime.datetime(2026, 10, 8, 10, 0),
        )
        open_session = Session(date=datetime.datetime(2026, 10, 9, 9, 0))
        for s in (older, newer, open_session):
            self.sessions.add(s)

        self.assertEqual(self.sessions.count(), 3)
        self.assertEqual(self.sessions.count(completed_only=True), 2)
        self.assertEqual(self.sessions.fetch_last_completed().id, newer.id)
        window = self.sessions.fetch_sessions(
            start_date="2026-10-02", end_date="2026-10-09"
        )
        self.assertEqual([s.id for s in window], [newer.id])

        newer.pain_tags = ["Knees", "Lower Back"]
        newer.session_rpe = 4
        self.sessions.update(newer)
        loaded = self.sessions.fetch_detail(newer.id)
        self.assertEqual(loaded.pain_tags, ["Knees", "Lower Back"])
        self.assertEqual(loaded.session_rpe, 4)
        self.assertTrue(loaded.is_completed)

    def test_plan_roundtrip_and_cascade(self) -> None:
        plan = TrainingPlan(
            name="Upper Lower",
            days=[
                PlanDay(
                    name="Upper",
                    order_index=0,
                    exercises=[
                        PlannedExercise("Bench Press", sets=3, reps="5", order_index=0),
                        PlannedExercise("Barbell Row", sets=3, reps="8", order_index=1),
                    ],
                ),
                PlanDay(
                    name="Lower",
                    order_index=1,
                    exercises=[PlannedExercise("Back Squat", sets=5, reps="5")],
                ),
            ],
        )
        self.plans.add(plan)

        loaded = self.plans.fetch_detail(plan.id)
        self.assertEqual([d.name for d in loaded.sorted_days], ["Upper", "Lower"])
        upper = loaded.sorted_days[0]
        self.assertEqual(
            [e.display_prescription for e in upper.sorted_exercises],
            ["3 × 5", "3 × 8"],
        )

        self.plans.delete(plan.id)
        self.assertEqual(self.plans.fetch_plans(), [])
        self.assertEqual(self.days.fetch_all("SELECT COUNT(*) FROM plan_days;")[0][0], 0)
        self.assertEqual(
            self.planned.fetch_all("SELECT COUNT(*) FROM planned_exercises;")[0][0], 0
        )

    def test_planned_exercise_requires_sets(self) -> None:
        with self.assertRaises(ValueError):
            self.planned.add(PlannedExercise("Bench Press", sets=0))


class SchemaMigrationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_migration.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_adds_missing_columns_and_keeps_rows(self) -> None:
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            "CREATE TABLE exercises (id TEXT PRIMARY KEY, name TEXT NOT NULL, created_at TEXT NOT NULL)"
        )
        conn.execute(
            "INSERT INTO exercises (id, name, created_at) VALUES ('abc', 'Deadlift', '2026-01-01T00:00:00')"
        )
        conn.execute("CREATE TABLE exercises_old (id TEXT)")
        conn.commit()
        conn.close()

        Database(self.db_path)

        conn = sqlite3.connect(self.db_path)
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='exercises_old'"
        )
        self.assertIsNone(cur.fetchone())
        cols = [row[1] for row in conn.execute("PRAGMA table_info(exercises)")]
        self.assertIn("modality", cols)
        conn.close()

        exercise = ExerciseRepository(self.db_path).fetch_detail("abc")
        self.assertEqual(exercise.name, "Deadlift")
        self.assertEqual(exercise.modality, ExerciseModality.OTHER)
        self.assertEqual(exercise.muscle_groups, [])


if __name__ == "__main__":
    unittest.main()
