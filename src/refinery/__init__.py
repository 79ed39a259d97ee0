"""Command-line task dispatcher with a database-backed run lock."""

__version__ = "0.1.0"
