"""Lumina: a local-first personal planner (tasks, notes, workouts, XP)."""

__version__ = "0.4.0"
