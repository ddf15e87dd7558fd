# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets: keep PINGER_NOTION_TOKEN and PINGER_MATRIX_PASSWORD in .env (gitignored).

This file lists every variable read by task_pinger.config.Settings.from_env().
"""

ENV_VARS = {
    # App / logging
    "PINGER_APP_NAME": "App display name (default: task-pinger).",
    "PINGER_LOG_LEVEL": "Console logging level (default: INFO).",
    "PINGER_DEBUG": "Verbose logging of fetched tasks and Notion payloads (true/false).",
    "PINGER_DATA_DIR": "Local data directory for logs and the Matrix session (default: .local/pinger).",
    # Connectors
    "PINGER_CONSOLE_ENABLED": "Enable the console REPL (true/false, default: true).",
    "PINGER_CONSOLE_USER": "Chat handle used for commands typed into the console.",
    "PINGER_MATRIX_ENABLED": "Enable the Matrix connector (true/false, default: false).",
    # Matrix
    "PINGER_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "PINGER_MATRIX_USER_ID": "Matrix user ID (bot).",
    "PINGER_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "PINGER_MATRIX_ROOMS": "Optional allowlist of room IDs for commands (empty => all rooms).",
    "PINGER_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
    # Notion
    "PINGER_NOTION_TOKEN": "Notion integration token (required).",
    "PINGER_NOTION_DB": "Notion database ID holding the tasks (required).",
    "PINGER_NOTION_TIMEOUT_SECONDS": "HTTP timeout for Notion API calls (default: 10).",
    "PINGER_CACHE_REFRESH_SECONDS": "How often the task list is re-fetched (default: 300).",
    # Reminders
    "PINGER_DAILY_START": "First reminder time of day, HH:MM (default: 09:00).",
    "PINGER_DAILY_END": "No reminders at or after this time of day, HH:MM (default: 23:00).",
    "PINGER_SWEEP_PERIOD_MINUTES": "Minutes between reminder sweeps (default: 360).",
    "PINGER_DEADLINE_THRESHOLD_HOURS": "Remind about tasks due within this many hours (default: 24).",
    "PINGER_MESSAGE_TEMPLATE": "Reminder text with {mention} {title} {link} {deadline}; \\n for newlines.",
    "PINGER_TARGET_ROOM": "Room that receives reminders (default: first of PINGER_MATRIX_ROOMS).",
    "PINGER_TIMEZONE": "IANA zone for the reminder window, e.g. Europe/Berlin (default: system timezone).",
    # Users / access
    "PINGER_USERS": "Chat handle to Notion user ID pairs: '@alice:example.org=<uuid>, ...'.",
    "PINGER_ALLOWED_SENDERS": "Handles allowed to run /task, /deadline, /done (empty => everyone).",
}
