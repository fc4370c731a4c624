"""
Service collection module.

Ingests ordered service descriptors into a service manager and provides the
scope factory and "is service" services hosting frameworks expect.
"""

from .descriptors import ServiceDescriptor, build_service_provider
from .resolvers import SequenceResolver
from .services import (
    IServiceProviderIsService,
    IServiceScope,
    IServiceScopeFactory,
    ServiceProviderIsService,
    ServiceScope,
    ServiceScopeFactory,
)

__all__ = [
    "ServiceDescriptor",
    "build_service_provider",
    "SequenceResolver",
    "IServiceScope",
    "IServiceScopeFactory",
    "IServiceProviderIsService",
    "ServiceScope",
    "ServiceScopeFactory",
    "ServiceProviderIsService",
]
