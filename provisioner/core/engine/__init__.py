"""Step execution engine."""
