import datetime
import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, APIRouter, Query
from pydantic import BaseModel, Field

from db import (
    ExerciseRepository,
    PlanDayRepository,
    PlannedExerciseRepository,
    SessionRepository,
    SetEntryRepository,
    SettingsRepository,
    TrainingPlanRepository,
)
from exercise_resolver import ExerciseResolver
from models import Exercise, ExerciseModality, PlanDay, TrainingPlan
from planner_service import PlannerService
from seeder import DEFAULT_SEED_PATH, seed_default_exercises
from session_service import (
    PAIN_TAG_SUGGESTIONS,
    SessionCompletionService,
    SessionLogger,
)
from settings_schema import validate_settings
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


class PlannedExerciseIn(BaseModel):
    name: str
    sets: int = Field(3, ge=1)
    reps: str = "8-12"
    notes: Optional[str] = None


class PlanDayIn(BaseModel):
    name: Optional[str] = None
    exercises: List[PlannedExerciseIn] = []


class PlanIn(BaseModel):
    name: str
    days_per_week: int = 3
    notes: Optional[str] = None
    activate: bool = True
    days: List[PlanDayIn]


def _exercise_dict(exercise: Exercise) -> dict:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "modality": exercise.modality.value,
        "modality_name": exercise.modality.display_name,
        "icon": exercise.modality.icon,
        "muscle_groups": exercise.muscle_groups,
        "notes": exercise.notes,
        "is_custom": exercise.is_custom,
    }


def _day_dict(day: PlanDay) -> dict:
    return {
        "id": day.id,
        "name": day.name,
        "order_index": day.order_index,
        "exercises": [
            {
                "id": p.id,
                "name": p.exercise_name,
                "sets": p.sets,
                "reps": p.reps,
                "prescription": p.display_prescription,
                "notes": p.notes,
                "exercise_id": p.exercise_id,
            }
            for p in day.sorted_exercises
        ],
    }


def _plan_dict(plan: TrainingPlan) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "days_per_week": plan.days_per_week,
        "is_active": plan.is_active,
        "notes": plan.notes,
        "days": [_day_dict(d) for d in plan.sorted_days],
    }


def _parse_day(value: Optional[str]) -> Optional[datetime.date]:
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"invalid date: {value}")


class LiftLogAPI:
    """Provides REST endpoints for workout logging."""

    def __init__(
        self,
        db_path: str = "liftlog.db",
        yaml_path: str = "settings.yaml",
        *,
        seed: bool = True,
        seed_path: str = DEFAULT_SEED_PATH,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        self.sets = SetEntryRepository(db_path)
        self.exercises = ExerciseRepository(db_path, self.sets)
        self.sessions = SessionRepository(db_path, self.sets)
        self.planned_exercises = PlannedExerciseRepository(db_path)
        self.plan_days = PlanDayRepository(db_path, self.planned_exercises)
        self.plans = TrainingPlanRepository(db_path, self.plan_days)
        self.planner = PlannerService(self.plans, self.sessions, self.exercises)
        self.completion = SessionCompletionService(self.sessions)
        self.statistics = StatisticsService(
            self.sessions, self.exercises, self.sets, self.settings
        )
        self.active: SessionLogger | None = None
        if seed:
            seed_default_exercises(self.exercises, seed_path)
        self.app = FastAPI(
            title="LiftLog API",
            description="REST API for strength training logging and analytics",
        )
        self._setup_routes()

    def start_session(self, plan_day_id: str | None = None) -> SessionLogger:
        if self.active is not None:
            raise RuntimeError("a session is already in progress")
        plan_day = self.plan_days.fetch_detail(plan_day_id) if plan_day_id else None
        self.active = SessionLogger(
            self.sessions,
            self.sets,
            ExerciseResolver(self.exercises),
            plan_day,
            settings=self.settings,
        )
        return self.active

    def _require_active(self) -> SessionLogger:
        if self.active is None:
            raise HTTPException(status_code=404, detail="no active session")
        return self.active

    def _setup_routes(self) -> None:
        exercises_router = APIRouter(prefix="/exercises", tags=["Exercises"])
        plans_router = APIRouter(prefix="/plans", tags=["Plans"])
        session_router = APIRouter(prefix="/session", tags=["Active Session"])
        sessions_router = APIRouter(prefix="/sessions", tags=["Sessions"])
        stats_router = APIRouter(prefix="/stats", tags=["Statistics"])

        @exercises_router.get("")
        def list_exercises(modality: str | None = None, query: str | None = None):
            mod = ExerciseModality.parse(modality) if modality else None
            return [
                _exercise_dict(e) for e in self.exercises.fetch_exercises(mod, query)
            ]

        @exercises_router.post("")
        def add_exercise(
            name: str,
            modality: str = "other",
            muscle_groups: str = "",
            notes: str | None = None,
        ):
            muscles = [
                m.strip().lower() for m in muscle_groups.split(",") if m.strip()
            ]
            exercise = Exercise(
                name=name.strip(),
                muscle_groups=muscles,
                modality=ExerciseModality.parse(modality),
                notes=notes or None,
                is_custom=True,
            )
            try:
                return {"id": self.exercises.add(exercise)}
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @exercises_router.get("/{exercise_id}")
        def get_exercise(exercise_id: str):
            try:
                return _exercise_dict(self.exercises.fetch_detail(exercise_id))
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @exercises_router.delete("/{exercise_id}")
        def delete_exercise(exercise_id: str):
            try:
                self.exercises.delete(exercise_id)
                return {"status": "deleted"}
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @plans_router.post("")
        def create_plan(payload: PlanIn):
            try:
                plan = self.planner.create_plan(
                    payload.name,
                    [d.model_dump() for d in payload.days],
                    payload.days_per_week,
                    payload.notes,
                    payload.activate,
                )
                return {"id": plan.id}
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @plans_router.get("")
        def list_plans():
            return [_plan_dict(p) for p in self.plans.fetch_plans()]

        @plans_router.get("/active")
        def active_plan():
            plan = self.planner.active_plan()
            return _plan_dict(plan) if plan is not None else None

        @plans_router.get("/next_day")
        def next_day():
            day = self.planner.next_day()
            return _day_dict(day) if day is not None else None

        @plans_router.post("/{plan_id}/activate")
        def activate_plan(plan_id: str):
            try:
                self.planner.activate_plan(plan_id)
                return {"status": "activated"}
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @plans_router.delete("/{plan_id}")
        def delete_plan(plan_id: str):
            try:
                self.planner.delete_plan(plan_id)
                return {"status": "deleted"}
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.put("/plan_days/{day_id}/name")
        def rename_plan_day(day_id: str, name: str):
            try:
                self.planner.rename_day(day_id, name)
                return {"status": "updated"}
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @session_router.post("/start")
        def start_session(plan_day_id: str | None = None, next_day: bool = False):
            if next_day and plan_day_id is None:
                day = self.planner.next_day()
                plan_day_id = day.id if day is not None else None
            try:
                active = self.start_session(plan_day_id)
            except RuntimeError as e:
                raise HTTPException(status_code=409, detail=str(e))
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return active.snapshot()

        @session_router.get("")
        def get_session():
            return self._require_active().snapshot()

        @session_router.post("/exercises")
        def add_session_exercise(exercise_id: str):
            active = self._require_active()
            try:
                exercise = self.exercises.fetch_detail(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            if not active.add_exercise(exercise):
                raise HTTPException(status_code=400, detail="exercises can only be added to quick sessions")
            return active.snapshot()

        @session_router.post("/select")
        def select_exercise(index: int):
            active = self._require_active()
            active.select_exercise(index)
            return active.snapshot()

        @session_router.post("/next")
        def next_exercise():
            active = self._require_active()
            active.next_exercise()
            return active.snapshot()

        @session_router.post("/previous")
        def previous_exercise():
            active = self._require_active()
            active.previous_exercise()
            return active.snapshot()

        @session_router.post("/weight/{direction}")
        def step_weight(direction: str):
            active = self._require_active()
            if direction == "up":
                active.increment_weight()
            elif direction == "down":
                active.decrement_weight()
            else:
                raise HTTPException(status_code=400, detail="direction must be up or down")
            return active.snapshot()

        @session_router.post("/reps/{direction}")
        def step_reps(direction: str):
            active = self._require_active()
            if direction == "up":
                active.increment_reps()
            elif direction == "down":
                active.decrement_reps()
            else:
                raise HTTPException(status_code=400, detail="direction must be up or down")
            return active.snapshot()

        @session_router.post("/rpe")
        def toggle_rpe(value: int):
            active = self._require_active()
            active.toggle_rpe(value)
            return active.snapshot()

        @session_router.post("/sets")
        def log_set(
            weight: float | None = None,
            reps: int | None = None,
            rpe: int | None = None,
            notes: str | None = None,
        ):
            active = self._require_active()
            try:
                entry = active.log_set(weight, reps, rpe, notes)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {
                "set_id": entry.id if entry is not None else None,
                "session": active.snapshot(),
            }

        @session_router.post("/finish")
        def finish_session():
            active = self._require_active()
            if not active.finish():
                raise HTTPException(status_code=400, detail="log at least one set before finishing")
            self.active = None
            return {
                "id": active.session.id,
                "duration": active.session.duration,
                "total_volume": active.session.total_volume,
                "exercise_count": active.session.exercise_count,
                "sets": len(active.session.sets),
            }

        @session_router.delete("")
        def discard_session():
            active = self._require_active()
            active.discard()
            self.active = None
            return {"status": "discarded"}

        @sessions_router.get("")
        def list_sessions(completed_only: bool = True, limit: int | None = None):
            return [
                {
                    "id": s.id,
                    "date": s.date.isoformat(),
                    "plan_day": s.plan_day_name,
                    "duration": s.duration,
                    "rpe": s.session_rpe,
                    "completed": s.is_completed,
                    "total_volume": s.total_volume,
                    "exercise_count": s.exercise_count,
                }
                for s in self.sessions.fetch_sessions(completed_only=completed_only, limit=limit)
            ]

        @sessions_router.get("/pain_tags")
        def pain_tags():
            return PAIN_TAG_SUGGESTIONS

        @sessions_router.get("/{session_id}")
        def get_session_detail(session_id: str):
            try:
                return self.statistics.session_summary(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @sessions_router.post("/{session_id}/complete")
        def complete_session(
            session_id: str,
            rpe: int,
            pain_tags: List[str] = Query(default=[]),
            notes: str | None = None,
        ):
            try:
                session = self.sessions.fetch_detail(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            if self.active is not None and self.active.session.id == session_id:
                raise HTTPException(status_code=409, detail="session is in progress")
            if session.duration is None:
                raise HTTPException(status_code=409, detail="session is not finished")
            try:
                self.completion.complete(session, rpe, pain_tags, notes)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {
                "id": session.id,
                "completed_at": session.completed_at.isoformat(),
            }

        @sessions_router.delete("/{session_id}")
        def delete_session(session_id: str):
            if self.active is not None and self.active.session.id == session_id:
                raise HTTPException(status_code=409, detail="session is in progress")
            try:
                self.sessions.fetch_detail(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            self.sessions.delete(session_id)
            return {"status": "deleted"}

        @stats_router.get("/weekly_volume")
        def weekly_volume(weeks: int | None = None, today: str | None = None):
            day = _parse_day(today)
            return self.statistics.weekly_volume(weeks, day)

        @stats_router.get("/consistency")
        def consistency(today: str | None = None):
            return self.statistics.weekly_consistency(_parse_day(today))

        @stats_router.get("/exercises/{exercise_id}/best")
        def exercise_best(exercise_id: str):
            try:
                return self.statistics.exercise_best(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @stats_router.get("/exercises/{exercise_id}/history")
        def exercise_history(exercise_id: str):
            try:
                return self.statistics.exercise_history(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.get("/settings")
        def get_settings():
            return self.settings.all_settings()

        @self.app.put("/settings/{key}")
        def update_setting(key: str, value: str):
            current = self.settings.all_settings()
            if key not in current:
                raise HTTPException(status_code=404, detail="unknown setting")
            try:
                validate_settings({**current, key: value})
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            self.settings.set_text(key, value)
            return {"status": "updated"}

        self.app.include_router(exercises_router)
        self.app.include_router(plans_router)
        self.app.include_router(session_router)
        self.app.include_router(sessions_router)
        self.app.include_router(stats_router)


api = LiftLogAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app)
