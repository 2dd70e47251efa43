from __future__ import annotations
import datetime
import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from db import SessionRepository, SetEntryRepository, SettingsRepository, check_set_values
from exercise_resolver import ExerciseResolver
from models import (
    Exercise,
    PlanDay,
    PlannedExercise,
    Session,
    SetEntry,
    WeightUnit,
)

logger = logging.getLogger(__name__)

PAIN_TAG_SUGGESTIONS = [
    "Shoulders",
    "Lower Back",
    "Upper Back",
    "Knees",
    "Elbows",
    "Wrists",
    "Hips",
    "Neck",
]

RPE_CHOICES = [6, 7, 8, 9, 10]


class SessionMode(str, Enum):
    PLANNED = "planned"
    QUICK = "quick"


class SessionState(str, Enum):
    AWAITING_EXERCISE = "awaiting_exercise"
    LOGGING_EXERCISE = "logging_exercise"
    PLAN_EXHAUSTED = "plan_exhausted"
    FINISHED = "finished"


class SessionLogger:
    """Drive a single live workout.

    With a plan day the logger walks the planned exercises in order and
    moves on once each has its prescribed number of sets. Without one it
    runs a quick session where exercises are picked from the library as
    the workout goes. The session row is written when the logger is
    created and every set is written the moment it is logged.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        set_repo: SetEntryRepository,
        resolver: ExerciseResolver,
        plan_day: PlanDay | None = None,
        *,
        settings: SettingsRepository | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.sessions = session_repo
        self.sets = set_repo
        self.resolver = resolver
        self.plan_day = plan_day
        self.mode = SessionMode.PLANNED if plan_day is not None else SessionMode.QUICK
        self._clock = clock or datetime.datetime.now

        self.weight_unit = WeightUnit.LBS
        self.weight = 135.0
        self.reps = 5
        self.weight_increment = 5.0
        if settings is not None:
            self.weight_unit = WeightUnit(settings.get_text("weight_unit", "lbs"))
            self.weight = settings.get_float("default_weight", 135.0)
            self.reps = settings.get_int("default_reps", 5)
            self.weight_increment = settings.get_float("weight_increment", 5.0)
        self.selected_rpe: Optional[int] = None

        self.planned_exercises: list[PlannedExercise] = (
            plan_day.sorted_exercises if plan_day is not None else []
        )
        self.added_exercises: list[Exercise] = []
        self.current_index = 0
        self.current_set_number = 1
        self._exercises_by_id: dict[str, Exercise] = {}
        self._finished = False
        self.discarded = False

        self.start_time = self._clock()
        self.session = Session(
            date=self.start_time,
            plan_day_name=plan_day.name if plan_day is not None else None,
        )
        self.sessions.add(self.session)
        logger.info(
            "Started %s session %s%s",
            self.mode.value,
            self.session.id,
            f" for {plan_day.name!r}" if plan_day is not None else "",
        )

    @property
    def state(self) -> SessionState:
        if self._finished:
            return SessionState.FINISHED
        if self.mode is SessionMode.PLANNED:
            if self.current_planned_exercise is None:
                return SessionState.PLAN_EXHAUSTED
            return SessionState.LOGGING_EXERCISE
        if not self.added_exercises:
            return SessionState.AWAITING_EXERCISE
        return SessionState.LOGGING_EXERCISE

    @property
    def current_planned_exercise(self) -> PlannedExercise | None:
        if self.mode is not SessionMode.PLANNED:
            return None
        if self.current_index >= len(self.planned_exercises):
            return None
        return self.planned_exercises[self.current_index]

    @property
    def current_exercise_name(self) -> str | None:
        if self.state is not SessionState.LOGGING_EXERCISE:
            return None
        if self.mode is SessionMode.PLANNED:
            return self.current_planned_exercise.exercise_name
        return self.added_exercises[self.current_index].name

    @property
    def target_sets(self) -> int | None:
        planned = self.current_planned_exercise
        return planned.sets if planned is not None else None

    @property
    def set_number(self) -> int | None:
        if self.state is not SessionState.LOGGING_EXERCISE:
            return None
        if self.mode is SessionMode.PLANNED:
            return self.current_set_number
        return len(self.sets_for_current_exercise()) + 1

    @property
    def can_log(self) -> bool:
        return self.state is SessionState.LOGGING_EXERCISE

    @property
    def can_finish(self) -> bool:
        if self._finished:
            return False
        if self.mode is SessionMode.QUICK:
            return bool(self.session.sets)
        return True

    def sets_for_current_exercise(self) -> list[SetEntry]:
        name = self.current_exercise_name
        if name is None:
            return []
        return [
            s
            for s in self.session.sets
            if s.exercise_id in self._exercises_by_id
            and self._exercises_by_id[s.exercise_id].name == name
        ]

    def elapsed(self) -> float:
        if self.session.duration is not None:
            return self.session.duration
        return (self._clock() - self.start_time).total_seconds()

    # quick-session exercise selection

    def add_exercise(self, exercise: Exercise) -> bool:
        """Add a library exercise to a quick session and select it."""
        if self._finished or self.mode is not SessionMode.QUICK:
            return False
        for index, existing in enumerate(self.added_exercises):
            if existing.id == exercise.id:
                self.current_index = index
                return True
        self.added_exercises.append(self.resolver.remember(exercise))
        self.current_index = len(self.added_exercises) - 1
        return True

    def select_exercise(self, index: int) -> bool:
        if self._finished or self.mode is not SessionMode.QUICK:
            return False
        if not 0 <= index < len(self.added_exercises):
            return False
        self.current_index = index
        return True

    def next_exercise(self) -> bool:
        if not self.added_exercises:
            return False
        return self.select_exercise(
            min(self.current_index + 1, len(self.added_exercises) - 1)
        )

    def previous_exercise(self) -> bool:
        if not self.added_exercises:
            return False
        return self.select_exercise(max(self.current_index - 1, 0))

    # weight / reps / rpe counters

    def increment_weight(self) -> float:
        self.weight += self.weight_increment
        return self.weight

    def decrement_weight(self) -> float:
        self.weight = max(0.0, self.weight - self.weight_increment)
        return self.weight

    def increment_reps(self) -> int:
        self.reps += 1
        return self.reps

    def decrement_reps(self) -> int:
        self.reps = max(1, self.reps - 1)
        return self.reps

    def toggle_rpe(self, rpe: int) -> Optional[int]:
        self.selected_rpe = None if self.selected_rpe == rpe else rpe
        return self.selected_rpe

    # logging

    def _target_exercise(self) -> Exercise:
        if self.mode is SessionMode.PLANNED:
            return self.resolver.resolve(self.current_planned_exercise.exercise_name)
        return self.added_exercises[self.current_index]

    def log_set(
        self,
        weight: float | None = None,
        reps: int | None = None,
        rpe: int | None = None,
        notes: str | None = None,
    ) -> SetEntry | None:
        """Log one set against the current exercise.

        Returns ``None`` without touching any state when nothing can be
        logged. A storage error propagates before the set is appended.
        """
        if not self.can_log:
            return None
        weight = self.weight if weight is None else float(weight)
        reps = self.reps if reps is None else int(reps)
        rpe = self.selected_rpe if rpe is None else rpe
        check_set_values(weight, reps, rpe)
        exercise = self._target_exercise()
        entry = SetEntry(
            exercise_id=exercise.id,
            session_id=self.session.id,
            weight=weight,
            weight_unit=self.weight_unit,
            reps=reps,
            rpe=rpe,
            notes=notes,
            timestamp=self._clock(),
            order_index=len(self.session.sets),
        )
        self.sets.add(entry)

        self.session.sets.append(entry)
        self._exercises_by_id[exercise.id] = exercise
        self.weight = weight
        self.reps = reps
        if self.mode is SessionMode.PLANNED:
            self._advance_plan()
        return entry

    def _advance_plan(self) -> None:
        planned = self.current_planned_exercise
        if self.current_set_number >= planned.sets:
            self.current_set_number = 1
            self.current_index += 1
            self.selected_rpe = None
            if self.current_index >= len(self.planned_exercises):
                logger.info("All planned exercises logged for session %s", self.session.id)
        else:
            self.current_set_number += 1

    # closing

    def finish(self) -> bool:
        """Record the elapsed duration and close the logger."""
        if not self.can_finish:
            return False
        previous = self.session.duration
        self.session.duration = (self._clock() - self.start_time).total_seconds()
        try:
            self.sessions.set_duration(self.session.id, self.session.duration)
        except Exception:
            self.session.duration = previous
            raise
        self._finished = True
        logger.info(
            "Finished session %s with %d sets in %.0fs",
            self.session.id,
            len(self.session.sets),
            self.session.duration,
        )
        return True

    def discard(self) -> None:
        """Throw away the session and every set logged into it."""
        if self.discarded:
            return
        self.sessions.delete(self.session.id)
        self._finished = True
        self.discarded = True
        logger.info("Discarded session %s", self.session.id)

    def snapshot(self) -> dict:
        return {
            "session_id": self.session.id,
            "mode": self.mode.value,
            "state": self.state.value,
            "plan_day": self.session.plan_day_name,
            "exercise": self.current_exercise_name,
            "set_number": self.set_number,
            "target_sets": self.target_sets,
            "weight": self.weight,
            "weight_unit": self.weight_unit.value,
            "reps": self.reps,
            "rpe": self.selected_rpe,
            "sets_logged": len(self.session.sets),
            "elapsed": round(self.elapsed(), 1),
            "can_log": self.can_log,
            "can_finish": self.can_finish,
            "exercises": (
                [p.exercise_name for p in self.planned_exercises]
                if self.mode is SessionMode.PLANNED
                else [e.name for e in self.added_exercises]
            ),
        }


class SessionCompletionService:
    """Attach post-workout feedback and mark a session completed."""

    def __init__(
        self,
        session_repo: SessionRepository,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.sessions = session_repo
        self._clock = clock or datetime.datetime.now

    def complete(
        self,
        session: Session,
        rpe: int,
        pain_tags: Iterable[str] = (),
        notes: str | None = None,
    ) -> Session:
        if not 1 <= rpe <= 5:
            raise ValueError("session rpe must be between 1 and 5")
        session.session_rpe = rpe
        session.pain_tags = list(dict.fromkeys(t for t in pain_tags if t))
        session.notes = notes if notes else None
        session.completed_at = self._clock()
        self.sessions.update(session)
        logger.info("Completed session %s (rpe %d)", session.id, rpe)
        return session
