from abc import ABC, abstractmethod
from typing import Any

from slim_di.domain import IDisposable, IServiceManager, IServiceProvider


class IServiceScope(IDisposable):
    """A child provider whose scoped services are released on `dispose()`."""

    @property
    @abstractmethod
    def service_provider(self) -> IServiceProvider:
        """The provider of the scope."""


class IServiceScopeFactory(ABC):
    """Creates scopes from the service manager it was resolved from."""

    @abstractmethod
    def create_scope(self) -> IServiceScope:
        """Create a new scope."""


class IServiceProviderIsService(ABC):
    """Answers whether a type can be resolved without resolving it."""

    @abstractmethod
    def is_service(self, service_type: Any) -> bool:
        """Return True if `service_type` is resolvable."""


class ServiceScope(IServiceScope):
    """Wraps a child service manager and disposes it when the scope ends.

    Example:
        >>> with scope_factory.create_scope() as scope:
        ...     handler = scope.service_provider.get_service(RequestHandler)
    """

    def __init__(self, service_provider: IServiceProvider) -> None:
        self._service_provider = service_provider

    @property
    def service_provider(self) -> IServiceProvider:
        return self._service_provider

    def dispose(self) -> None:
        if isinstance(self._service_provider, IDisposable):
            self._service_provider.dispose()

    def __enter__(self) -> "ServiceScope":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.dispose()
        return False


class ServiceScopeFactory(IServiceScopeFactory):
    """Scope factory bound to the service manager that resolved it."""

    def __init__(self, service_manager: IServiceManager) -> None:
        self._service_manager = service_manager

    def create_scope(self) -> ServiceScope:
        return ServiceScope(self._service_manager.create_scope())


class ServiceProviderIsService(IServiceProviderIsService):
    def __init__(self, service_manager: IServiceManager) -> None:
        self._service_manager = service_manager

    def is_service(self, service_type: Any) -> bool:
        return self._service_manager.is_registered(service_type)
