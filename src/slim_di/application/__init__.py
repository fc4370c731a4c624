"""
Application layer - Use cases and orchestration.

This layer contains the use cases that orchestrate domain objects.
It depends only on the Domain layer.
"""

from .container import ServiceManager, ServicesOfType
from .exception_guard import ExceptionGuard
from .lifetime_manager import LifetimeManager
from .resolver import ConstructorResolver
from .resolver_chain import ResolverChain

__all__ = [
    "ServiceManager",
    "ServicesOfType",
    "ConstructorResolver",
    "LifetimeManager",
    "ResolverChain",
    "ExceptionGuard",
]
