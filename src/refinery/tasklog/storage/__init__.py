"""SQLite storage for the task log."""
