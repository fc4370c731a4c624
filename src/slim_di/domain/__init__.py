"""
Domain layer - Core business logic and models.

This layer contains the fundamental business rules and models for dependency injection.
It has no dependencies on other layers.
"""

from .enums import Lifetime
from .exceptions import (
    ArgumentNullError,
    DependencyResolutionError,
    DIException,
    FactoryInvocationError,
    InvalidOperationError,
    NotSupportedError,
)
from .interfaces import (
    ExceptionHandler,
    IConstructorResolver,
    IDependencyResolver,
    IDisposable,
    ILifetimeManager,
    IServiceManager,
    IServiceProducer,
    IServiceProvider,
    ServiceFactory,
)
from .markers import do_not_inject, injectable_constructor
from .models import ConstructorCandidate, Registration

# Rebuild Pydantic models to resolve forward references
Registration.model_rebuild()

__all__ = [
    # Enums
    "Lifetime",
    # Exceptions
    "DIException",
    "DependencyResolutionError",
    "InvalidOperationError",
    "NotSupportedError",
    "ArgumentNullError",
    "FactoryInvocationError",
    # Interfaces
    "IServiceProvider",
    "IServiceProducer",
    "IServiceManager",
    "IDependencyResolver",
    "IConstructorResolver",
    "ILifetimeManager",
    "IDisposable",
    "ServiceFactory",
    "ExceptionHandler",
    # Markers
    "do_not_inject",
    "injectable_constructor",
    # Models
    "Registration",
    "ConstructorCandidate",
]
