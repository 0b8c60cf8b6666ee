"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskCategory) and JSON parsing
- task_store.py: JSON file storage (load/save)
- task_api.py: task mutations that drive notification scheduling
"""
