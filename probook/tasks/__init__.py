"""
Celery tasks package.

- Notification drain and retry tasks
- Earnings promotion task
"""
