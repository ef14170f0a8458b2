"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, Quadrant) and lifecycle
- task_store.py: SQLite-backed storage (single connection, one lock)
- task_api.py: service layer used by the command surface
"""
