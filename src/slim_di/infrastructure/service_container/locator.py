import inspect
from typing import Any, Callable, Optional, Type, TypeVar

from slim_di.application import ServiceManager
from slim_di.domain import IServiceManager, NotSupportedError, ServiceFactory

T = TypeVar("T")

ServiceCreatorCallback = Callable[["ServiceContainer", Any], Any]


class ServiceContainer:
    """Service-locator style facade over a service manager.

    Every service added through this facade is a singleton. A service is
    either an instance or a callback `callback(container, service_type)`
    called on first resolution. Callables that are not instances of the
    requested type are treated as callbacks.

    Example:
        >>> container = ServiceContainer(manager.create_scope())
        >>> container.add_service(IMenuCommandService, MenuCommandService(), promote=True)
        >>> commands = manager.get_service(IMenuCommandService)
    """

    def __init__(self, service_manager: Optional[IServiceManager] = None) -> None:
        """Initialize the facade.

        Args:
            service_manager: Manager receiving the services, a new one if omitted.
        """
        self._service_manager = service_manager if service_manager is not None else ServiceManager()

    @property
    def service_manager(self) -> IServiceManager:
        return self._service_manager

    def add_service(self, service_type: Type[T], service: Any, promote: bool = False) -> None:
        """Add an instance or callback as a singleton.

        Args:
            service_type: The requested type.
            service: Instance, or callback building the instance.
            promote: Also add the service to every ancestor service manager.
        """
        factory = self._to_factory(service_type, service)
        manager: Optional[IServiceManager] = self._service_manager
        if not promote:
            manager.register_singleton_factory(service_type, factory)
            return

        while manager is not None:
            manager.register_singleton_factory(service_type, factory)
            manager = manager.parent

    def get_service(self, service_type: Type[T]) -> Optional[T]:
        return self._service_manager.get_service(service_type)

    def remove_service(self, service_type: Type[Any], promote: bool = False) -> None:
        """Not supported, use `clear()` instead.

        Raises:
            NotSupportedError: Always.
        """
        raise NotSupportedError("Removing one service is not currently supported")

    def clear(self) -> None:
        """Clear every registration of the underlying service manager."""
        self._service_manager.clear()

    def _to_factory(self, service_type: Type[Any], service: Any) -> ServiceFactory:
        if _is_callback(service_type, service):
            return lambda sp: service(self, service_type)
        return lambda sp: service


def _is_callback(service_type: Type[Any], service: Any) -> bool:
    if not callable(service) or inspect.isclass(service):
        return False
    if not inspect.isclass(service_type):
        return True
    try:
        return not isinstance(service, service_type)
    except TypeError:
        # Protocols without runtime_checkable reject isinstance checks
        return True
