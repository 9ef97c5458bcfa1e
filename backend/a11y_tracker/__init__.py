"""Accessibility scan tracking backend."""
