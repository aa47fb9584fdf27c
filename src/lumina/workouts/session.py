# src/lumina/workouts/session.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.effects import Effect, SetCompleted
from .workout_models import Routine, WorkoutExerciseResult, WorkoutLog, WorkoutSetResult

logger = logging.getLogger(__name__)


class WorkoutSession:
    """
    One in-progress workout built from a routine.

    Every exercise starts with `target_sets` empty sets. Index errors on
    exercise/set positions surface as IndexError to the caller.
    """

    def __init__(self, routine: Routine, started_at: datetime) -> None:
        self.routine_name = routine.name
        self.started_at = started_at
        self.exercises: list[WorkoutExerciseResult] = [
            WorkoutExerciseResult(
                exercise_name=ex.name,
                sets=[WorkoutSetResult() for _ in range(max(0, ex.target_sets))],
            )
            for ex in routine.exercises
        ]

    def toggle_set(self, exercise_index: int, set_index: int) -> list[Effect]:
        exercise = self.exercises[exercise_index]
        s = exercise.sets[set_index]
        s.completed = not s.completed
        if s.completed:
            return [SetCompleted(exercise_name=exercise.exercise_name, set_index=set_index)]
        return []

    def update_set(
        self,
        exercise_index: int,
        set_index: int,
        *,
        weight: float | None = None,
        reps: int | None = None,
    ) -> WorkoutSetResult:
        s = self.exercises[exercise_index].sets[set_index]
        if weight is not None:
            s.weight = max(0.0, float(weight))
        if reps is not None:
            s.reps = max(0, int(reps))
        return s

    def add_set(self, exercise_index: int) -> int:
        sets = self.exercises[exercise_index].sets
        sets.append(WorkoutSetResult())
        return len(sets) - 1

    def elapsed_seconds(self, now: datetime) -> int:
        return max(0, int((now - self.started_at).total_seconds()))

    def finish(self, log_id: str, now: datetime) -> WorkoutLog:
        log = WorkoutLog(
            id=log_id,
            routine_name=self.routine_name,
            date=now,
            duration_seconds=self.elapsed_seconds(now),
            exercises=self.exercises,
        )
        logger.info("Workout finished routine=%s duration=%ss", self.routine_name, log.duration_seconds)
        return log
