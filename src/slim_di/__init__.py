"""
slim-di: Dependency injection container with constructor auto-wiring and hierarchical scopes.

Public API exports for the slim-di package.
"""

# Application exports
from slim_di.application.container import ServiceManager

# Domain exports
from slim_di.domain.enums import Lifetime
from slim_di.domain.exceptions import (
    ArgumentNullError,
    DependencyResolutionError,
    DIException,
    FactoryInvocationError,
    InvalidOperationError,
    NotSupportedError,
)
from slim_di.domain.interfaces import (
    IDependencyResolver,
    IDisposable,
    IServiceManager,
    IServiceProducer,
    IServiceProvider,
)
from slim_di.domain.markers import do_not_inject, injectable_constructor

__version__ = "0.1.0"

__all__ = [
    # Service manager
    "ServiceManager",
    # Interfaces
    "IServiceProvider",
    "IServiceProducer",
    "IServiceManager",
    "IDependencyResolver",
    "IDisposable",
    # Enums
    "Lifetime",
    # Constructor metadata
    "do_not_inject",
    "injectable_constructor",
    # Exceptions
    "DIException",
    "DependencyResolutionError",
    "InvalidOperationError",
    "NotSupportedError",
    "ArgumentNullError",
    "FactoryInvocationError",
]
