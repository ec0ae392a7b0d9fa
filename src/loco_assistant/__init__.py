"""Tool-calling assistant for fitness trainers."""
