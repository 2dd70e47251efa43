from __future__ import annotations
import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


def new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime.datetime:
    return datetime.datetime.now()


class ExerciseModality(str, Enum):
    BARBELL = "barbell"
    DUMBBELL = "dumbbell"
    MACHINE = "machine"
    CABLE = "cable"
    BODYWEIGHT = "bodyweight"
    CARDIO = "cardio"
    CLIMB = "climb"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "ExerciseModality":
        """Return the modality for ``value`` or ``OTHER`` when unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    @property
    def display_name(self) -> str:
        return MODALITY_DISPLAY_NAMES[self]

    @property
    def icon(self) -> str:
        return MODALITY_ICONS[self]


MODALITY_DISPLAY_NAMES = {
    ExerciseModality.BARBELL: "Barbell",
    ExerciseModality.DUMBBELL: "Dumbbell",
    ExerciseModality.MACHINE: "Machine",
    ExerciseModality.CABLE: "Cable",
    ExerciseModality.BODYWEIGHT: "Bodyweight",
    ExerciseModality.CARDIO: "Cardio",
    ExerciseModality.CLIMB: "Climb",
    ExerciseModality.OTHER: "Other",
}

MODALITY_ICONS = {
    ExerciseModality.BARBELL: "figure.strengthtraining.traditional",
    ExerciseModality.DUMBBELL: "dumbbell.fill",
    ExerciseModality.MACHINE: "gearshape.fill",
    ExerciseModality.CABLE: "cable.connector",
    ExerciseModality.BODYWEIGHT: "figure.walk",
    ExerciseModality.CARDIO: "heart.fill",
    ExerciseModality.CLIMB: "mountain.2.fill",
    ExerciseModality.OTHER: "ellipsis.circle.fill",
}


class WeightUnit(str, Enum):
    LBS = "lbs"
    KG = "kg"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass
class Exercise:
    """A movement in the exercise library."""

    name: str
    muscle_groups: list[str] = field(default_factory=list)
    modality: ExerciseModality = ExerciseModality.OTHER
    notes: Optional[str] = None
    is_custom: bool = False
    created_at: datetime.datetime = field(default_factory=_now)
    id: str = field(default_factory=new_id)


@dataclass
class SetEntry:
    """A single logged set.

    ``exercise_id`` and ``session_id`` are plain references; a set whose
    exercise has been removed stays valid and reports ``"Unknown"``.
    """

    weight: float
    reps: int
    exercise_id: Optional[str] = None
    session_id: Optional[str] = None
    weight_unit: WeightUnit = WeightUnit.LBS
    rpe: Optional[int] = None
    notes: Optional[str] = None
    timestamp: datetime.datetime = field(default_factory=_now)
    order_index: int = 0
    id: str = field(default_factory=new_id)

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    @property
    def display_weight(self) -> str:
        if float(self.weight).is_integer():
            formatted = f"{self.weight:.0f}"
        else:
            formatted = f"{self.weight:.1f}"
        return f"{formatted} {self.weight_unit.display_name}"


@dataclass
class Session:
    """One workout. ``completed_at`` is the only completion signal."""

    date: datetime.datetime = field(default_factory=_now)
    plan_day_name: Optional[str] = None
    duration: Optional[float] = None
    session_rpe: Optional[int] = None
    notes: Optional[str] = None
    pain_tags: list[str] = field(default_factory=list)
    completed_at: Optional[datetime.datetime] = None
    sets: list[SetEntry] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def total_volume(self) -> float:
        return sum(s.weight * s.reps for s in self.sets)

    @property
    def exercise_count(self) -> int:
        return len({s.exercise_id for s in self.sets if s.exercise_id is not None})

    @property
    def sorted_sets(self) -> list[SetEntry]:
        return sorted(self.sets, key=lambda s: s.order_index)


@dataclass
class PlannedExercise:
    exercise_name: str
    sets: int = 3
    reps: str = "8-12"
    notes: Optional[str] = None
    order_index: int = 0
    plan_day_id: Optional[str] = None
    exercise_id: Optional[str] = None
    id: str = field(default_factory=new_id)

    @property
    def display_prescription(self) -> str:
        return f"{self.sets} × {self.reps}"


@dataclass
class PlanDay:
    name: str
    order_index: int = 0
    plan_id: Optional[str] = None
    exercises: list[PlannedExercise] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def sorted_exercises(self) -> list[PlannedExercise]:
        return sorted(self.exercises, key=lambda e: e.order_index)


@dataclass
class TrainingPlan:
    name: str
    days_per_week: int = 3
    is_active: bool = False
    created_at: datetime.datetime = field(default_factory=_now)
    notes: Optional[str] = None
    days: list[PlanDay] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def sorted_days(self) -> list[PlanDay]:
        return sorted(self.days, key=lambda d: d.order_index)
