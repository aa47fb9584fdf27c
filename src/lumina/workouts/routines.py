# src/lumina/workouts/routines.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from .workout_models import ExerciseTemplate, Routine, WorkoutLog

# (name, sets, reps) per exercise
RECOMMENDED_ROUTINES: dict[str, tuple[str, list[tuple[str, int, str]]]] = {
    "fullbody": (
        "Full Body Blast",
        [
            ("Squats", 3, "15"),
            ("Push-ups", 3, "12"),
            ("Lunges", 3, "10/leg"),
            ("Plank", 3, "45s"),
            ("Jumping Jacks", 3, "50"),
        ],
    ),
    "morning": (
        "Morning Stretch",
        [
            ("Neck Rolls", 2, "30s"),
            ("Cat-Cow", 2, "10"),
            ("Child's Pose", 2, "45s"),
            ("Shoulder Circles", 2, "20"),
        ],
    ),
    "upper": (
        "Upper Body Strength",
        [
            ("Push-ups", 4, "10"),
            ("Tricep Dips", 3, "12"),
            ("Pike Push-ups", 3, "8"),
            ("Plank Shoulder Taps", 3, "20"),
        ],
    ),
}


def create_routine(routines: list[Routine], routine_id: str, name: str) -> list[Routine]:
    name = name.strip()
    if not name:
        raise ValueError("routine name is required")
    return [*routines, Routine(id=routine_id, name=name)]


def add_exercise(
    routines: list[Routine],
    routine_id: str,
    exercise: ExerciseTemplate,
) -> list[Routine]:
    return [
        replace(r, exercises=[*r.exercises, exercise]) if r.id == routine_id else r
        for r in routines
    ]


def delete_routine(routines: list[Routine], routine_id: str) -> list[Routine]:
    return [r for r in routines if r.id != routine_id]


def import_recommended(routines: list[Routine], key: str, id_factory: Callable[[], str]) -> list[Routine]:
    try:
        name, exercises = RECOMMENDED_ROUTINES[key]
    except KeyError:
        raise ValueError(
            f"unknown routine {key!r} (available: {', '.join(RECOMMENDED_ROUTINES)})"
        ) from None
    routine = Routine(
        id=id_factory(),
        name=name,
        exercises=[
            ExerciseTemplate(id=id_factory(), name=ex_name, target_sets=sets, target_reps=reps)
            for ex_name, sets, reps in exercises
        ],
    )
    return [*routines, routine]


# ---- analytics ----


def total_volume(log: WorkoutLog) -> float:
    """Sum of weight x reps over every set (completed or not, as logged)."""
    return sum(s.weight * s.reps for ex in log.exercises for s in ex.sets)


def volume_history(logs: list[WorkoutLog]) -> list[tuple[str, float]]:
    """(ISO date, volume) pairs, oldest first. Logs are stored newest first."""
    return [(log.date.date().isoformat(), total_volume(log)) for log in reversed(logs)]
