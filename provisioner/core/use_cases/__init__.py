"""Use cases — the operations exposed to every front end."""
