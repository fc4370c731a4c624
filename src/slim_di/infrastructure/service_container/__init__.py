"""
Service container module.

Provides a service-locator style facade for hosting frameworks that add and
look up services by type.
"""

from .locator import ServiceContainer, ServiceCreatorCallback

__all__ = [
    "ServiceContainer",
    "ServiceCreatorCallback",
]
