"""Command-line interface for deferred-session."""
