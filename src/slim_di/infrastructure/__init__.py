"""
Infrastructure layer - External integrations.

This layer contains adapters for hosting frameworks and testing tools.
It depends on both Application and Domain layers.
"""

from . import fastapi_integration, service_collection, service_container, testing

__all__ = [
    "fastapi_integration",
    "service_collection",
    "service_container",
    "testing",
]
