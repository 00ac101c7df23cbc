"""Presentation logic for the admin console (no I/O)."""
