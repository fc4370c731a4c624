"""
Testing utilities module.

Provides helpers and utilities for testing applications using slim-di.
"""

from .utilities import MockScope, TestServiceManager, create_mock_manager

__all__ = [
    "TestServiceManager",
    "create_mock_manager",
    "MockScope",
]
