"""
Notification subsystem.

Components:
- notification_ids.py: notification ids derived from task ids
- notification_scheduler.py: eligibility + cancel-then-schedule reconciliation
- local_backend.py: asyncio-timer delivery backend
"""
