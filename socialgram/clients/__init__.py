"""Clients for external services."""
from .backend import (
    BackendClient,
    BackendError,
    QueryResult,
    create_backend_client,
    eq,
    gt,
    ilike,
    in_,
    neq,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "QueryResult",
    "create_backend_client",
    "eq",
    "gt",
    "ilike",
    "in_",
    "neq",
]
