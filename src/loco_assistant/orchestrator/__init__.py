"""Assistant run loop and system prompt."""
