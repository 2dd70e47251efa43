from __future__ import annotations
import logging

from db import ExerciseRepository
from models import Exercise, ExerciseModality

logger = logging.getLogger(__name__)


class ExerciseResolver:
    """Find an exercise by exact name or create it.

    One resolver is used per workout. Every exercise it returns is cached
    by name so repeated lookups hand back the same instance and a missing
    name is inserted only once.
    """

    def __init__(self, exercise_repo: ExerciseRepository) -> None:
        self.exercises = exercise_repo
        self._resolved: dict[str, Exercise] = {}

    def resolve(self, name: str) -> Exercise:
        cached = self._resolved.get(name)
        if cached is not None:
            return cached
        exercise = self.exercises.fetch_by_name(name)
        if exercise is None:
            exercise = Exercise(
                name=name,
                modality=ExerciseModality.OTHER,
                is_custom=False,
            )
            self.exercises.add(exercise)
            logger.info("Created exercise %r while logging", name)
        self._resolved[name] = exercise
        return exercise

    def remember(self, exercise: Exercise) -> Exercise:
        """Register a library exercise chosen directly by the user."""
        return self._resolved.setdefault(exercise.name, exercise)
