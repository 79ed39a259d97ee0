"""Task resolution and dispatch for the ``refinery refine`` command."""
