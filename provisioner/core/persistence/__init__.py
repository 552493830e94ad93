"""Persistence — record store, sidecar files and audit ledger."""
