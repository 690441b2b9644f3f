"""Helpers for secrets and encrypted storage of session material."""
