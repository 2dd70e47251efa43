from typing import Iterable

import numpy as np


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPLEY_DIVISOR: float = 30.0
    BRZYCKI_NUMERATOR: float = 36.0
    BRZYCKI_LIMIT: int = 37
    FORMULAS = ("epley", "brzycki")

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Epley formula.

        A single rep or a non-positive rep count returns ``weight`` unchanged.
        """
        if reps <= 1:
            return weight
        return weight * (1 + reps / cls.EPLEY_DIVISOR)

    @classmethod
    def brzycki_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Brzycki formula.

        The formula diverges at 37 reps, so counts outside 2..36 return
        ``weight`` unchanged.
        """
        if reps <= 1 or reps >= cls.BRZYCKI_LIMIT:
            return weight
        return weight * (cls.BRZYCKI_NUMERATOR / (cls.BRZYCKI_LIMIT - reps))

    @classmethod
    def estimate_1rm(cls, weight: float, reps: int, formula: str = "epley") -> float:
        """Return the one-rep max estimate using ``formula``."""
        if formula == "epley":
            return cls.epley_1rm(weight, reps)
        if formula == "brzycki":
            return cls.brzycki_1rm(weight, reps)
        raise ValueError(f"unknown formula: {formula}")

    @classmethod
    def best_1rm(
        cls, sets: Iterable[tuple[float, int]], formula: str = "epley"
    ) -> float | None:
        """Return the highest estimate over ``(weight, reps)`` pairs."""
        estimates = np.array(
            [cls.estimate_1rm(w, r, formula) for w, r in sets], dtype=float
        )
        if estimates.size == 0:
            return None
        return float(np.max(estimates))

    @staticmethod
    def volume(sets: Iterable[tuple[float, int]]) -> float:
        """Compute training volume as the sum of weight times reps."""
        vol = 0.0
        for weight, reps in sets:
            vol += weight * reps
        return vol
