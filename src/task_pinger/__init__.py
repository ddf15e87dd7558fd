"""task-pinger: Notion task reminders for chat rooms."""
