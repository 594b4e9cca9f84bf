"""In-memory editor documents used by the local host."""
