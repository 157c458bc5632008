"""todolist — a personal to-do list with local persistence and reminders."""
