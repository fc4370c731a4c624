from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Type, TypeVar

from slim_di.domain.models import Registration

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)

ServiceFactory = Callable[["IServiceProvider"], Any]
ExceptionHandler = Callable[["IServiceProvider", E], bool]


class IServiceProvider(ABC):
    """Abstract interface for resolving services."""

    @abstractmethod
    def get_service(self, service_type: Type[T]) -> Optional[T]:
        """Resolve and return an instance of the requested type.

        Args:
            service_type: The type to resolve.
        """

    @abstractmethod
    def get_services_of_type(self, capability: Type[T]) -> Iterable[T]:
        """Return every registered service whose implementation derives from `capability`.

        Args:
            capability: The base class or interface the services must implement.
        """

    @abstractmethod
    def create_scope(self) -> "IServiceManager":
        """Create and return a child service manager."""


class IServiceProducer(ABC):
    """Abstract interface for registering services."""

    @abstractmethod
    def is_registered(self, service_type: Any) -> bool:
        """Return True if the manager can produce the requested type."""

    @abstractmethod
    def register_resolver(self, dependency_resolver: "IDependencyResolver") -> None:
        """Append a resolver consulted before automatic construction."""

    @abstractmethod
    def register_transient(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service that is built on every resolution."""

    @abstractmethod
    def register_scoped(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service that is built once per service manager."""

    @abstractmethod
    def register_singleton(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service that is built once for the whole scope chain."""

    @abstractmethod
    def register_transient_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a transient service built by `factory`."""

    @abstractmethod
    def register_scoped_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a scoped service built by `factory`."""

    @abstractmethod
    def register_singleton_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a singleton service built by `factory`."""


class IServiceManager(IServiceProvider, IServiceProducer):
    """Abstract interface for a full service manager (provider and producer)."""

    @property
    @abstractmethod
    def allow_scoped_manager_modifications(self) -> bool:
        """Whether scopes created from this manager accept registrations."""

    @property
    @abstractmethod
    def is_read_only(self) -> bool:
        """Whether this manager rejects registrations."""

    @property
    @abstractmethod
    def parent(self) -> Optional["IServiceManager"]:
        """The manager that created this one, or None for a root."""

    @abstractmethod
    def build_singletons(self) -> None:
        """Eagerly resolve every singleton registration."""

    @abstractmethod
    def handle_exception(self, error_type: Type[E], handler: ExceptionHandler) -> None:
        """Register a handler deciding whether errors of `error_type` are re-raised.

        Args:
            error_type: The exact exception type to intercept.
            handler: Receives the manager and the error, returns True to re-raise.
        """

    @abstractmethod
    def remove(self, service_type: Any) -> None:
        """Remove every registration of `service_type`."""

    @abstractmethod
    def clear(self) -> None:
        """Clear all registrations, instances and exception handlers."""

    @abstractmethod
    def dispose(self) -> None:
        """Dispose owned instances and release every internal table."""


class IDependencyResolver(ABC):
    """Abstract interface for resolvers that claim types before auto-wiring."""

    @abstractmethod
    def can_resolve(self, service_type: Any) -> bool:
        """Return True if this resolver supplies instances of `service_type`."""

    @abstractmethod
    def resolve(self, service_provider: IServiceProvider, service_type: Any) -> Any:
        """Build an instance of `service_type`.

        Args:
            service_provider: The manager the request was made against.
            service_type: The requested type.
        """


class IConstructorResolver(ABC):
    """Abstract interface for constructor-based instance creation."""

    @abstractmethod
    def resolve_dependencies(
        self,
        implementation_type: Type,
        resolve_parameter: Callable[[Any], Any],
    ) -> Any:
        """Pick a constructor of `implementation_type`, resolve its parameters and call it.

        Args:
            implementation_type: The concrete class to instantiate.
            resolve_parameter: Resolves one parameter type, raising
                DependencyResolutionError when it cannot be satisfied.

        Returns:
            Instance with all dependencies injected.

        Raises:
            DependencyResolutionError: If no constructor candidate can be satisfied.
        """


class ILifetimeManager(ABC):
    """Abstract interface for managing cached instances."""

    @abstractmethod
    def get_or_create(self, registration: Registration, factory: Callable[[], Any]) -> Any:
        """Get the cached instance or create one according to the lifetime.

        Args:
            registration: The registration being resolved.
            factory: A callable creating a new instance if needed.
        """

    @abstractmethod
    def clear_cache(self) -> None:
        """Forget every cached instance."""


class IDisposable(ABC):
    """Anything exposing a callable `dispose()`.

    Classes do not need to inherit from this interface, `isinstance` checks
    recognise any object with a `dispose` method.
    """

    @abstractmethod
    def dispose(self) -> None:
        """Release resources held by the instance."""

    @classmethod
    def __subclasshook__(cls, subclass: type) -> Any:
        if cls is IDisposable:
            return callable(getattr(subclass, "dispose", None))
        return NotImplemented
