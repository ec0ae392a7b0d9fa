"""Model provider adapters and routing."""
