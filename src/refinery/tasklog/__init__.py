"""Persisted task log that doubles as a cross-process run lock."""
