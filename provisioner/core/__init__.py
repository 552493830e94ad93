"""Core domain — models, persistence, services and use cases."""
