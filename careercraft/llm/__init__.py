"""Chat model selection."""
