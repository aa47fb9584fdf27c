# src/lumina/tasks/recurrence.py

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from .task_models import RepeatType


def advance(dt: datetime, repeat_type: RepeatType) -> datetime:
    """
    Next occurrence of a due instant, one recurrence unit later.

    Monthly keeps the day-of-month and clamps to the last day of a shorter month
    (Jan 31 -> Feb 28/29, Mar 31 -> Apr 30). Wall-clock time is preserved.
    """
    if repeat_type == RepeatType.DAILY:
        return dt + timedelta(days=1)
    if repeat_type == RepeatType.WEEKLY:
        return dt + timedelta(days=7)
    if repeat_type == RepeatType.MONTHLY:
        return dt + relativedelta(months=1)
    return dt
