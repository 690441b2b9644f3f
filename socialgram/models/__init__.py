"""Convenience exports for ORM models."""
from .auth_state import AuthStateItem

__all__ = ["AuthStateItem"]
