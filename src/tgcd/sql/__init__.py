"""Versioned SQL migrations applied at startup."""
