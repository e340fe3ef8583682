"""DailyFlow: a local daily-task checklist with JSON backup and AI autofill."""
