"""Open Runtimes for Python."""
