from __future__ import annotations
import logging
from typing import Optional

from db import (
    ExerciseRepository,
    PlanDayRepository,
    SessionRepository,
    TrainingPlanRepository,
)
from models import PlanDay, PlannedExercise, Session, TrainingPlan

logger = logging.getLogger(__name__)


def next_plan_day(
    plan: Optional[TrainingPlan], last_completed: Optional[Session]
) -> Optional[PlanDay]:
    """Return the plan day that follows the last completed session.

    Days rotate in order index order. When the last session's day name
    does not match any current day (no history, or the plan was edited)
    the rotation restarts at the first day.
    """
    if plan is None:
        return None
    days = plan.sorted_days
    if not days:
        return None
    if last_completed is not None and last_completed.plan_day_name is not None:
        for index, day in enumerate(days):
            if day.name == last_completed.plan_day_name:
                return days[(index + 1) % len(days)]
    return days[0]


class PlannerService:
    """Manages training plans and picks the next day to train."""

    def __init__(
        self,
        plan_repo: TrainingPlanRepository,
        session_repo: SessionRepository,
        exercise_repo: ExerciseRepository | None = None,
    ) -> None:
        self.plans = plan_repo
        self.sessions = session_repo
        self.exercises = exercise_repo

    @property
    def days(self) -> PlanDayRepository:
        return self.plans.days

    def active_plan(self) -> Optional[TrainingPlan]:
        return self.plans.fetch_active()

    def next_day(self) -> Optional[PlanDay]:
        return next_plan_day(self.active_plan(), self.sessions.fetch_last_completed())

    def save_plan(self, plan: TrainingPlan) -> str:
        """Validate, normalize and persist a new plan.

        Days and planned exercises are renumbered from zero in list order.
        Saving an active plan deactivates every other plan.
        """
        if not plan.name or not plan.name.strip():
            raise ValueError("plan name cannot be empty")
        if not 1 <= plan.days_per_week <= 7:
            raise ValueError("days_per_week must be between 1 and 7")
        if not plan.days:
            raise ValueError("plan must contain at least one day")
        for day_index, day in enumerate(plan.days):
            if not day.name:
                raise ValueError("day name cannot be empty")
            day.order_index = day_index
            day.plan_id = plan.id
            day.exercises = [e for e in day.exercises if e.exercise_name]
            for ex_index, planned in enumerate(day.exercises):
                planned.order_index = ex_index
                planned.plan_day_id = day.id
                if planned.exercise_id is None and self.exercises is not None:
                    match = self.exercises.fetch_by_name(planned.exercise_name)
                    if match is not None:
                        planned.exercise_id = match.id
        if plan.is_active:
            self.plans.deactivate_all()
        self.plans.add(plan)
        logger.info(
            "Saved plan %r with %d days%s",
            plan.name,
            len(plan.days),
            " (active)" if plan.is_active else "",
        )
        return plan.id

    def create_plan(
        self,
        name: str,
        days: list[dict],
        days_per_week: int = 3,
        notes: str | None = None,
        activate: bool = True,
    ) -> TrainingPlan:
        """Build and save a plan from plain day/exercise dictionaries."""
        plan = TrainingPlan(
            name=name,
            days_per_week=days_per_week,
            is_active=activate,
            notes=notes or None,
        )
        for day_data in days:
            plan.days.append(
                PlanDay(
                    name=day_data.get("name") or f"Day {len(plan.days) + 1}",
                    exercises=[
                        PlannedExercise(
                            exercise_name=ex.get("name", ""),
                            sets=int(ex.get("sets", 3)),
                            reps=str(ex.get("reps", "8-12")),
                            notes=ex.get("notes"),
                        )
                        for ex in day_data.get("exercises", [])
                    ],
                )
            )
        self.save_plan(plan)
        return plan

    def activate_plan(self, plan_id: str) -> None:
        self.plans.fetch_detail(plan_id)
        self.plans.deactivate_all(except_id=plan_id)
        self.plans.set_active(plan_id)
        logger.info("Activated plan %s", plan_id)

    def rename_day(self, day_id: str, name: str) -> None:
        self.days.rename(day_id, name)

    def delete_plan(self, plan_id: str) -> None:
        self.plans.delete(plan_id)
