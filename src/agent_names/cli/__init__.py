"""Command-line interface for agent-names."""
