"""
FastAPI integration module.

Provides helpers and utilities for integrating slim-di with FastAPI.
"""

from .integration import (
    ScopedServiceManagerMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    get_request_scope,
)

__all__ = [
    "create_fastapi_dependency",
    "create_scoped_dependency",
    "get_request_scope",
    "ScopedServiceManagerMiddleware",
]
