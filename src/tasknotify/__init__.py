"""To-do list with local due-date reminders."""

__version__ = "0.1.0"
