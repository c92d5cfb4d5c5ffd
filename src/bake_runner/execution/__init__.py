"""Task execution for the bake runner."""
