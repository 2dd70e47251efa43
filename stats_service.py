from __future__ import annotations
import datetime
from typing import Dict, Iterable, List, Optional

import numpy as np

from algorithms import MathTools
from db import ExerciseRepository, SessionRepository, SetEntryRepository, SettingsRepository
from models import Exercise, Session, SetEntry

UNKNOWN_EXERCISE = "Unknown"


def week_start(day: datetime.date, first_weekday: int = 0) -> datetime.date:
    """Return the first day of the calendar week containing ``day``."""
    return day - datetime.timedelta(days=(day.weekday() - first_weekday) % 7)


def best_estimate(sets: Iterable[SetEntry], formula: str = "epley") -> Optional[float]:
    """Return the highest one-rep max estimate or ``None`` for no sets."""
    return MathTools.best_1rm(((s.weight, s.reps) for s in sets), formula)


def best_set(sets: Iterable[SetEntry], formula: str = "epley") -> Optional[SetEntry]:
    candidates = list(sets)
    if not candidates:
        return None
    return max(
        candidates, key=lambda s: MathTools.estimate_1rm(s.weight, s.reps, formula)
    )


def session_volume(session: Session) -> float:
    return MathTools.volume((s.weight, s.reps) for s in session.sets)


def weekly_volume(
    sessions: Iterable[Session],
    weeks: int = 4,
    today: Optional[datetime.date] = None,
    first_weekday: int = 0,
) -> List[float]:
    """Total volume per calendar week for the last ``weeks`` weeks.

    The list runs oldest to newest and ends with the current week.
    """
    if weeks <= 0:
        return []
    today = today or datetime.date.today()
    oldest = week_start(today, first_weekday) - datetime.timedelta(weeks=weeks - 1)
    totals = np.zeros(weeks, dtype=float)
    for session in sessions:
        offset = (week_start(session.date.date(), first_weekday) - oldest).days // 7
        if 0 <= offset < weeks:
            totals[offset] += session_volume(session)
    return [float(v) for v in totals]


def weekly_consistency(
    sessions: Iterable[Session],
    today: Optional[datetime.date] = None,
    first_weekday: int = 0,
) -> Dict[str, object]:
    """Which days of the current calendar week contain a session."""
    today = today or datetime.date.today()
    start = week_start(today, first_weekday)
    days = [False] * 7
    for session in sessions:
        offset = (session.date.date() - start).days
        if 0 <= offset < 7:
            days[offset] = True
    return {
        "week_start": start.isoformat(),
        "days_trained": sum(days),
        "days": days,
    }


def e1rm_history(sets: Iterable[SetEntry], formula: str = "epley") -> List[Dict[str, object]]:
    """Per-set estimates ordered by time, for trend charts."""
    return [
        {
            "timestamp": s.timestamp.isoformat(),
            "weight": s.weight,
            "reps": s.reps,
            "est_1rm": MathTools.estimate_1rm(s.weight, s.reps, formula),
        }
        for s in sorted(sets, key=lambda s: s.timestamp)
    ]


def exercise_groups(
    session: Session, exercises: Dict[str, Exercise]
) -> List[tuple[str, List[SetEntry]]]:
    """Group a session's sets by exercise name in logging order.

    Sets whose exercise is missing are grouped under ``"Unknown"``.
    """
    groups: Dict[str, List[SetEntry]] = {}
    for entry in session.sorted_sets:
        exercise = exercises.get(entry.exercise_id) if entry.exercise_id else None
        name = exercise.name if exercise is not None else UNKNOWN_EXERCISE
        groups.setdefault(name, []).append(entry)
    return sorted(groups.items(), key=lambda item: item[1][0].order_index)


class StatisticsService:
    """Compute workout statistics over completed sessions."""

    def __init__(
        self,
        session_repo: SessionRepository,
        exercise_repo: ExerciseRepository,
        set_repo: SetEntryRepository,
        settings_repo: SettingsRepository | None = None,
    ) -> None:
        self.sessions = session_repo
        self.exercises = exercise_repo
        self.sets = set_repo
        self.settings = settings_repo

    def _formula(self) -> str:
        if self.settings is None:
            return "epley"
        return self.settings.get_text("one_rep_max_formula", "epley")

    def _first_weekday(self) -> int:
        if self.settings is None:
            return 0
        return self.settings.get_int("first_weekday", 0)

    def weekly_volume(
        self, weeks: int | None = None, today: Optional[datetime.date] = None
    ) -> List[Dict[str, object]]:
        if weeks is None:
            weeks = self.settings.get_int("weekly_volume_weeks", 4) if self.settings else 4
        today = today or datetime.date.today()
        first_weekday = self._first_weekday()
        oldest = week_start(today, first_weekday) - datetime.timedelta(weeks=max(weeks, 1) - 1)
        sessions = self.sessions.fetch_sessions(
            completed_only=True, start_date=oldest.isoformat()
        )
        volumes = weekly_volume(sessions, weeks, today, first_weekday)
        return [
            {
                "week_start": (oldest + datetime.timedelta(weeks=i)).isoformat(),
                "volume": vol,
            }
            for i, vol in enumerate(volumes)
        ]

    def weekly_consistency(self, today: Optional[datetime.date] = None) -> Dict[str, object]:
        today = today or datetime.date.today()
        start = week_start(today, self._first_weekday())
        sessions = self.sessions.fetch_sessions(
            completed_only=True, start_date=start.isoformat()
        )
        return weekly_consistency(sessions, today, self._first_weekday())

    def exercise_best(self, exercise_id: str) -> Dict[str, object]:
        exercise = self.exercises.fetch_detail(exercise_id)
        sets = self.sets.fetch_for_exercise(exercise_id)
        formula = self._formula()
        top = best_set(sets, formula)
        return {
            "exercise": exercise.name,
            "best_estimate": best_estimate(sets, formula),
            "best_set": (
                {"weight": top.weight, "reps": top.reps, "unit": top.weight_unit.value}
                if top is not None
                else None
            ),
        }

    def exercise_history(self, exercise_id: str) -> List[Dict[str, object]]:
        self.exercises.fetch_detail(exercise_id)
        return e1rm_history(self.sets.fetch_for_exercise(exercise_id), self._formula())

    def session_summary(self, session_id: str) -> Dict[str, object]:
        session = self.sessions.fetch_detail(session_id)
        exercises = self.exercises.fetch_many(s.exercise_id for s in session.sets)
        formula = self._formula()
        groups = []
        for name, sets in exercise_groups(session, exercises):
            top = best_set(sets, formula)
            groups.append(
                {
                    "exercise": name,
                    "sets": [
                        {
                            "weight": s.weight,
                            "unit": s.weight_unit.value,
                            "reps": s.reps,
                            "rpe": s.rpe,
                            "timestamp": s.timestamp.isoformat(),
                            "display": f"{s.display_weight} × {s.reps}",
                        }
                        for s in sets
                    ],
                    "best_estimate": MathTools.estimate_1rm(top.weight, top.reps, formula),
                }
            )
        return {
            "id": session.id,
            "date": session.date.isoformat(),
            "plan_day": session.plan_day_name,
            "duration": session.duration,
            "rpe": session.session_rpe,
            "notes": session.notes,
            "pain_tags": session.pain_tags,
            "completed": session.is_completed,
            "total_volume": session_volume(session),
            "exercise_count": session.exercise_count,
            "exercises": groups,
        }
