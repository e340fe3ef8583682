"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, TaskStatus, TaskSuggestion)
- task_store.py: ordered in-memory list with write-through persistence
- reorder.py: reorder gesture state machine + list permutation
- task_api.py: form validation, suggestion merge, view filter, stats
"""
