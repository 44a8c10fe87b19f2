"""Agent-facing protocol adapters."""
