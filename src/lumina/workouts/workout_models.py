# src/lumina/workouts/workout_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..tasks.task_models import parse_datetime


@dataclass(slots=True)
class ExerciseTemplate:
    id: str
    name: str
    target_sets: int
    target_reps: str  # free text: "12", "10/leg", "45s"


@dataclass(slots=True)
class Routine:
    id: str
    name: str
    exercises: list[ExerciseTemplate] = field(default_factory=list)


@dataclass(slots=True)
class WorkoutSetResult:
    weight: float = 0.0
    reps: int = 0
    completed: bool = False


@dataclass(slots=True)
class WorkoutExerciseResult:
    exercise_name: str
    sets: list[WorkoutSetResult] = field(default_factory=list)


@dataclass(slots=True)
class WorkoutLog:
    id: str
    routine_name: str
    date: datetime
    duration_seconds: int
    exercises: list[WorkoutExerciseResult] = field(default_factory=list)


# ---- JSON shape ----


def routine_to_dict(r: Routine) -> dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "exercises": [
            {
                "id": ex.id,
                "name": ex.name,
                "targetSets": ex.target_sets,
                "targetReps": ex.target_reps,
            }
            for ex in r.exercises
        ],
    }


def routine_from_dict(d: Mapping[str, Any]) -> Routine:
    exercises = [
        ExerciseTemplate(
            id=str(ex["id"]),
            name=str(ex.get("name") or ""),
            target_sets=max(0, int(ex.get("targetSets") or 0)),
            target_reps=str(ex.get("targetReps") or ""),
        )
        for ex in d.get("exercises") or []
        if isinstance(ex, Mapping)
    ]
    return Routine(id=str(d["id"]), name=str(d.get("name") or ""), exercises=exercises)


def workout_log_to_dict(log: WorkoutLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "routineName": log.routine_name,
        "date": log.date.isoformat(),
        "durationSeconds": log.duration_seconds,
        "exercises": [
            {
                "exerciseName": ex.exercise_name,
                "sets": [
                    {"weight": s.weight, "reps": s.reps, "completed": s.completed}
                    for s in ex.sets
                ],
            }
            for ex in log.exercises
        ],
    }


def workout_log_from_dict(d: Mapping[str, Any]) -> WorkoutLog:
    exercises: list[WorkoutExerciseResult] = []
    for ex in d.get("exercises") or []:
        if not isinstance(ex, Mapping):
            continue
        sets = [
            WorkoutSetResult(
                weight=float(s.get("weight") or 0.0),
                reps=int(s.get("reps") or 0),
                completed=bool(s.get("completed", False)),
            )
            for s in ex.get("sets") or []
            if isinstance(s, Mapping)
        ]
        exercises.append(
            WorkoutExerciseResult(exercise_name=str(ex.get("exerciseName") or ""), sets=sets)
        )
    return WorkoutLog(
        id=str(d["id"]),
        routine_name=str(d.get("routineName") or ""),
        date=parse_datetime(d["date"]),
        duration_seconds=max(0, int(d.get("durationSeconds") or 0)),
        exercises=exercises,
    )
