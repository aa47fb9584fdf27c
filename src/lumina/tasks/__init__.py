"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, drafts/patches, JSON shape)
- recurrence.py: next due date for repeating tasks
- engine.py: lifecycle state machine (create/edit/toggle/status/delete)
- views.py: sorting, filtering and kanban/calendar bucketing
- smart_input.py: quick-entry text parser
- due_watcher.py: polling loop that reports tasks that just fell due
"""
