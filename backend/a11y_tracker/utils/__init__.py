"""Invariant checks and validation helpers."""
