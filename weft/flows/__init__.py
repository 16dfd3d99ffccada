"""Agent execution flows."""
