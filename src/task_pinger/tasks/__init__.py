"""
Reminder subsystem.

Components:
- task_models.py: data structures (Task, Assignee)
- task_cache.py: in-memory snapshot of the task list, refreshed from a TaskSource
- user_directory.py: chat handle <-> Notion user id lookup
- pinger.py: the daily reminder scheduler
- reminders.py: rendering of reminder messages for notifiers
"""
