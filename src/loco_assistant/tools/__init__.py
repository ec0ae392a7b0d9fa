"""Tool catalog, handlers and dispatch."""
