"""User interfaces — web and CLI front ends."""
