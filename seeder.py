import json
import logging
import os

from db import ExerciseRepository
from models import Exercise, ExerciseModality

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = os.path.join(
    os.path.dirname(__file__), "seed_data", "default_exercises.json"
)


def _load_records(path: str) -> list[Exercise]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    exercises = []
    for record in data["exercises"]:
        name = record["name"]
        if not isinstance(name, str) or not name:
            raise ValueError("exercise name cannot be empty")
        exercises.append(
            Exercise(
                name=name,
                modality=ExerciseModality.parse(record.get("modality")),
                muscle_groups=[str(m) for m in record.get("muscleGroups", [])],
                is_custom=False,
            )
        )
    return exercises


def seed_default_exercises(
    exercise_repo: ExerciseRepository, path: str = DEFAULT_SEED_PATH
) -> int:
    """Import the bundled exercise library into an empty database.

    Returns the number of exercises inserted. Nothing is inserted when the
    library already has entries or the seed file cannot be read.
    """
    if exercise_repo.count() != 0:
        return 0
    try:
        exercises = _load_records(path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Failed to load default exercises from %s: %s", path, e)
        return 0
    for exercise in exercises:
        exercise_repo.add(exercise)
    logger.info("Seeded %d default exercises", len(exercises))
    return len(exercises)
