import functools
import inspect
import logging
import threading
from abc import ABC
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
)

from slim_di.application.exception_guard import ExceptionGuard
from slim_di.application.lifetime_manager import LifetimeManager
from slim_di.application.resolver import ConstructorResolver
from slim_di.application.resolver_chain import ResolverChain
from slim_di.domain import (
    ArgumentNullError,
    DependencyResolutionError,
    DIException,
    ExceptionHandler,
    FactoryInvocationError,
    IConstructorResolver,
    IDependencyResolver,
    InvalidOperationError,
    IServiceManager,
    IServiceProducer,
    IServiceProvider,
    Lifetime,
    Registration,
    ServiceFactory,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NON_INTERFACE_BASES = (object, ABC, Generic, Protocol)


def _type_name(service_type: Any) -> str:
    return getattr(service_type, "__name__", repr(service_type))


def _implemented_interfaces(implementation_type: Type) -> List[Type]:
    return [base for base in inspect.getmro(implementation_type)[1:] if base not in _NON_INTERFACE_BASES]


def _is_assignable(implementation_type: Type, capability: Any) -> bool:
    try:
        return issubclass(implementation_type, capability)
    except TypeError:
        return False


class ServicesOfType(Iterable[T]):
    """Lazy view over every service implementing a capability.

    Each iteration re-scans the registrations of the service manager, so
    services registered after the view was created are included.
    """

    def __init__(self, service_manager: "ServiceManager", capability: Type[T]) -> None:
        self._service_manager = service_manager
        self._capability = capability

    def __iter__(self) -> Iterator[T]:
        return self._service_manager._iterate_services_of_type(self._capability)


class ServiceManager(IServiceManager):
    """Dependency injection container storing and resolving services.

    Registrations map a requested type to an implementation type and a
    lifetime. Resolution consults the resolver chain first, then the
    registration's factory, then constructor discovery. Scoped and singleton
    instances are cached per implementation type; scopes created with
    `create_scope` forward singleton resolution to their parent.

    Every mutation and resolution runs under a reentrant lock and through the
    exception guard, so handlers registered with `handle_exception` can
    swallow errors of a given type.

    Attributes:
        _registrations: Requested type to ordered registrations, the first is primary.
        _lifetime_manager: Cache of scoped and singleton instances.
        _resolvers: Resolver overrides consulted before construction.
        _exception_guard: Per-type exception handlers.
        _constructor_resolver: Component instantiating implementation types.
        _parent: Service manager that created this scope, None for roots.
    """

    def __init__(self, allow_scoped_manager_modifications: bool = False) -> None:
        """Initialize an empty root service manager.

        Args:
            allow_scoped_manager_modifications: Whether scopes created from this
                manager accept registrations.
        """
        self._registrations: Dict[Any, List[Registration]] = {}
        self._lifetime_manager = LifetimeManager()
        self._resolvers = ResolverChain()
        self._exception_guard = ExceptionGuard()
        self._constructor_resolver: IConstructorResolver = ConstructorResolver()
        self._allow_scoped_manager_modifications = allow_scoped_manager_modifications
        self._parent: Optional["ServiceManager"] = None
        self._is_read_only = False
        self._disposed = False
        self._lock = threading.RLock()

    @property
    def allow_scoped_manager_modifications(self) -> bool:
        return self._allow_scoped_manager_modifications

    @allow_scoped_manager_modifications.setter
    def allow_scoped_manager_modifications(self, value: bool) -> None:
        self._allow_scoped_manager_modifications = value

    @property
    def is_read_only(self) -> bool:
        return self._is_read_only

    @property
    def parent(self) -> Optional["ServiceManager"]:
        return self._parent

    # Registration

    def register_transient(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service built anew on every resolution.

        Args:
            service_type: The requested type. Registered against itself when
                `implementation_type` is omitted.
            implementation_type: The concrete class to build.
            register_all_interfaces: Also register the class against every
                base class it derives from. Only used without `implementation_type`.

        Raises:
            InvalidOperationError: If the service manager is read-only.

        Example:
            >>> manager.register_transient(IRequestHandler, RequestHandler)
            >>> manager.register_transient(EventProcessor, register_all_interfaces=True)
        """
        self._register_service(service_type, implementation_type, Lifetime.TRANSIENT, None, register_all_interfaces)

    def register_scoped(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service built once per service manager.

        See `register_transient` for the arguments.
        """
        self._register_service(service_type, implementation_type, Lifetime.SCOPED, None, register_all_interfaces)

    def register_singleton(
        self,
        service_type: Any,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a service built once for the whole scope chain.

        See `register_transient` for the arguments.
        """
        self._register_service(service_type, implementation_type, Lifetime.SINGLETON, None, register_all_interfaces)

    def register_transient_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a transient service built by `factory`.

        Args:
            service_type: The requested type.
            factory: Receives the requesting service manager and returns an instance.
            implementation_type: Key of the instance cache, defaults to `service_type`.
            register_all_interfaces: Also register against every base class.

        Raises:
            ArgumentNullError: If `factory` is None.
            InvalidOperationError: If the service manager is read-only.

        Example:
            >>> manager.register_transient_factory(Clock, lambda sp: Clock(tz="UTC"))
        """
        self._register_factory(service_type, factory, implementation_type, Lifetime.TRANSIENT, register_all_interfaces)

    def register_scoped_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a scoped service built by `factory`."""
        self._register_factory(service_type, factory, implementation_type, Lifetime.SCOPED, register_all_interfaces)

    def register_singleton_factory(
        self,
        service_type: Any,
        factory: ServiceFactory,
        implementation_type: Optional[Type] = None,
        *,
        register_all_interfaces: bool = False,
    ) -> None:
        """Register a singleton service built by `factory`."""
        self._register_factory(service_type, factory, implementation_type, Lifetime.SINGLETON, register_all_interfaces)

    def register_many(self, factories: Dict[Any, ServiceFactory], lifetime: Lifetime) -> None:
        """Register several factories with the same lifetime.

        Args:
            factories: Dictionary mapping requested types to factories.
            lifetime: Lifetime applied to every entry.
        """
        for service_type, factory in factories.items():
            self._register_factory(service_type, factory, None, lifetime, False)

    def register_singletons(self, factories: Dict[Any, ServiceFactory]) -> None:
        """Register multiple singleton factories at once.

        Example:
            >>> manager.register_singletons({
            ...     DatabaseConfig: lambda sp: DatabaseConfig.from_env(),
            ...     DatabaseConnection: lambda sp: DatabaseConnection(sp.get_service(DatabaseConfig)),
            ... })
        """
        self.register_many(factories, Lifetime.SINGLETON)

    def register_transients(self, factories: Dict[Any, ServiceFactory]) -> None:
        """Register multiple transient factories at once."""
        self.register_many(factories, Lifetime.TRANSIENT)

    def register_resolver(self, dependency_resolver: IDependencyResolver) -> None:
        """Append a resolver consulted before constructor discovery.

        Raises:
            InvalidOperationError: If the service manager is read-only.
        """

        def register() -> None:
            with self._lock:
                self._ensure_writable("register resolver")
                self._resolvers.register(dependency_resolver)

        self._exception_guard.run(self, register)

    def handle_exception(self, error_type: Type[BaseException], handler: ExceptionHandler) -> None:
        """Intercept errors of exactly `error_type` raised by guarded operations.

        Args:
            error_type: Exception type to intercept, subclasses are not matched.
            handler: Receives the service manager and the error. Returning True
                re-raises the error, returning False swallows it.

        Raises:
            InvalidOperationError: If a handler for `error_type` already exists.
        """
        with self._lock:
            self._exception_guard.add_handler(error_type, handler)

    def is_registered(self, service_type: Any) -> bool:
        """Return True if the service manager can produce `service_type`."""

        def lookup() -> bool:
            if self._is_self_marker(service_type):
                return True
            with self._lock:
                return bool(self._registrations.get(service_type)) or self._resolvers.can_resolve(service_type)

        return bool(self._exception_guard.run(self, lookup, default=False))

    def remove(self, service_type: Any) -> None:
        """Remove every registration of `service_type` and release its instances.

        Raises:
            InvalidOperationError: If the service manager is read-only.
        """

        def remove() -> None:
            with self._lock:
                self._ensure_writable("remove service")
                removed = self._registrations.pop(service_type, [])
                remaining = {
                    registration.implementation_type
                    for registrations in self._registrations.values()
                    for registration in registrations
                }
                owned = set(self._owned_implementation_types(removed))
                for registration in removed:
                    implementation_type = registration.implementation_type
                    if implementation_type not in remaining:
                        self._lifetime_manager.release(
                            [implementation_type],
                            dispose=implementation_type in owned,
                        )

        self._exception_guard.run(self, remove)

    def clear(self) -> None:
        """Clear all registrations, instances and exception handlers.

        Disposes every disposable instance owned by this service manager.

        Raises:
            InvalidOperationError: If the service manager is read-only.
        """

        def clear() -> None:
            with self._lock:
                self._ensure_writable("clear")
                self._release_instances()
                self._registrations.clear()
                self._exception_guard.clear()

        self._exception_guard.run(self, clear)

    # Resolution

    def get_service(self, service_type: Type[T]) -> Optional[T]:
        """Resolve and return an instance of the requested type.

        Args:
            service_type: The type to resolve.

        Returns:
            Instance of the requested type with all dependencies injected, or
            None if an exception handler swallowed the failure.

        Raises:
            DependencyResolutionError: If the type cannot be resolved.

        Example:
            >>> user_service = manager.get_service(IUserService)
        """

        def resolve() -> T:
            with self._lock:
                return self._get_object(service_type)

        return self._exception_guard.run(self, resolve)

    def get_services_of_type(self, capability: Type[T]) -> Iterable[T]:
        """Return a lazy, restartable view of every service implementing `capability`.

        Example:
            >>> for handler in manager.get_services_of_type(IEventHandler):
            ...     handler.handle(event)
        """
        return ServicesOfType(self, capability)

    def build_singletons(self) -> None:
        """Resolve every singleton registration now instead of on first use."""
        for service_type, registration in self._snapshot_registrations():
            if registration.lifetime is Lifetime.SINGLETON:
                self._get_guarded(service_type, registration)

    def get_registrations(self) -> Dict[Any, List[Registration]]:
        """Get a copy of the registrations, keyed by requested type."""
        with self._lock:
            return {service_type: list(registrations) for service_type, registrations in self._registrations.items()}

    # Scopes

    def create_scope(self) -> "ServiceManager":
        """Create a child service manager.

        The child copies the registrations, resolvers and exception handlers
        of this manager. Singletons are obtained from this manager, while
        scoped and transient services are built independently by the child.

        Returns:
            New child service manager, read-only unless
            `allow_scoped_manager_modifications` is set.

        Example:
            >>> with manager.create_scope() as scope:
            ...     context = scope.get_service(RequestContext)
            ...     assert context is scope.get_service(RequestContext)
        """
        with self._lock:
            scope = ServiceManager()
            scope._registrations = {
                service_type: [self._forwarding_registration(registration) for registration in registrations]
                for service_type, registrations in self._registrations.items()
            }
            scope._resolvers = self._resolvers.copy()
            scope._exception_guard = self._exception_guard.copy()
            scope._parent = self
            scope._is_read_only = not self._allow_scoped_manager_modifications

        logger.debug("Created %s scope", "read-only" if scope.is_read_only else "modifiable")
        return scope

    # Disposal

    def dispose(self) -> None:
        """Dispose owned instances and release every internal table.

        Scoped instances are always disposed. Singleton instances are only
        disposed by a root, as scopes share them with their parent. Calling
        this method more than once has no effect.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._release_instances()
            self._registrations.clear()
            self._resolvers.clear()
            self._exception_guard.clear()

        logger.debug("Disposed %s service manager", "root" if self._parent is None else "scoped")

    def __enter__(self) -> "ServiceManager":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.dispose()
        return False

    # Internals

    @staticmethod
    def _is_self_marker(service_type: Any) -> bool:
        return service_type in (IServiceProvider, IServiceProducer, IServiceManager, ServiceManager)

    def _ensure_writable(self, operation: str) -> None:
        if self._is_read_only:
            raise InvalidOperationError(f"Cannot {operation}. ServiceManager is readonly!")

    def _register_factory(
        self,
        service_type: Any,
        factory: Optional[ServiceFactory],
        implementation_type: Optional[Type],
        lifetime: Lifetime,
        register_all_interfaces: bool,
    ) -> None:
        if factory is None:
            raise ArgumentNullError("factory")
        self._register_service(service_type, implementation_type, lifetime, factory, register_all_interfaces)

    def _register_service(
        self,
        service_type: Any,
        implementation_type: Optional[Type],
        lifetime: Lifetime,
        factory: Optional[ServiceFactory],
        register_all_interfaces: bool,
    ) -> None:
        def register() -> None:
            with self._lock:
                self._ensure_writable("register service")

                if implementation_type is not None:
                    self._map(service_type, implementation_type, lifetime, factory)
                    return

                if not inspect.isclass(service_type):
                    raise ArgumentNullError("implementation_type")

                if register_all_interfaces:
                    for interface in _implemented_interfaces(service_type):
                        self._map(interface, service_type, lifetime, factory)
                self._map(service_type, service_type, lifetime, factory)

        self._exception_guard.run(self, register)

    def _map(
        self,
        service_type: Any,
        implementation_type: Type,
        lifetime: Lifetime,
        factory: Optional[ServiceFactory],
    ) -> None:
        registration = Registration(
            service_type=service_type,
            implementation_type=implementation_type,
            lifetime=lifetime,
            factory=factory,
        )
        self._registrations.setdefault(service_type, []).append(registration)
        logger.debug(
            "Registered %s -> %s as %s",
            _type_name(service_type),
            implementation_type.__name__,
            lifetime,
        )

    def _snapshot_registrations(self) -> List[Tuple[Any, Registration]]:
        with self._lock:
            return [
                (service_type, registration)
                for service_type, registrations in self._registrations.items()
                for registration in registrations
            ]

    def _get_object(self, service_type: Any) -> Any:
        if self._is_self_marker(service_type):
            return self

        registrations = self._registrations.get(service_type)
        if not registrations and not self._resolvers.can_resolve(service_type):
            raise DependencyResolutionError(service_type, "No registered service")

        return self._resolve_registration(service_type, registrations[0] if registrations else None)

    def _resolve_registration(self, service_type: Any, registration: Optional[Registration]) -> Any:
        if registration is None or not registration.lifetime.is_cached:
            return self._implement(service_type, registration)

        return self._lifetime_manager.get_or_create(
            registration,
            lambda: self._implement(service_type, registration),
        )

    def _get_guarded(self, service_type: Any, registration: Registration) -> Any:
        def resolve() -> Any:
            with self._lock:
                if not any(existing is registration for existing in self._registrations.get(service_type, [])):
                    raise DependencyResolutionError(service_type, "No registered service")
                return self._resolve_registration(service_type, registration)

        return self._exception_guard.run(self, resolve)

    def _implement(self, service_type: Any, registration: Optional[Registration]) -> Any:
        resolver = self._resolvers.find(service_type)
        if resolver is not None:
            instance = self._invoke(service_type, functools.partial(resolver.resolve, self, service_type))
        elif registration is not None and registration.factory is not None:
            instance = self._invoke(service_type, functools.partial(registration.factory, self))
        elif registration is not None:
            instance = self._construct(service_type, registration.implementation_type)
        else:
            raise DependencyResolutionError(service_type, "No registered service")

        if instance is None:
            raise DependencyResolutionError(service_type, "No suitable constructor was found")
        return instance

    @staticmethod
    def _invoke(service_type: Any, build: Callable[[], Any]) -> Any:
        try:
            return build()
        except DIException:
            raise
        except Exception as e:
            raise FactoryInvocationError(service_type, e) from e

    def _construct(self, service_type: Any, implementation_type: Type) -> Any:
        try:
            return self._constructor_resolver.resolve_dependencies(implementation_type, self._get_object)
        except DependencyResolutionError as e:
            if e.service_type is service_type:
                raise
            raise DependencyResolutionError(service_type, e.reason) from e

    def _iterate_services_of_type(self, capability: Any) -> Iterator[Any]:
        # Strong references, so ids of dropped transients cannot be reused mid-iteration
        yielded: List[Any] = []
        for service_type, registration in self._snapshot_registrations():
            if not _is_assignable(registration.implementation_type, capability):
                continue

            instance = self._get_guarded(service_type, registration)
            if instance is None or any(existing is instance for existing in yielded):
                continue

            yielded.append(instance)
            yield instance

    def _forwarding_registration(self, registration: Registration) -> Registration:
        if registration.lifetime is not Lifetime.SINGLETON:
            return registration

        return registration.with_factory(lambda scope: self._resolve_singleton_for_scope(scope, registration))

    def _resolve_singleton_for_scope(self, scope: "ServiceManager", registration: Registration) -> Any:
        service_type = registration.service_type
        try:
            instance = self._get_guarded(service_type, registration)
            if instance is None:
                raise DependencyResolutionError(service_type, "Unable to resolve singleton from the parent scope")
            return instance
        except DependencyResolutionError:
            if scope.is_read_only:
                raise

            # The scope may hold registrations its parent lacks, let it build the singleton itself
            implementation_type = registration.implementation_type
            try:
                instance = scope._constructor_resolver.resolve_dependencies(implementation_type, scope._get_object)
            except DependencyResolutionError:
                instance = None
            if instance is None:
                raise

            scope._lifetime_manager.store(implementation_type, instance)
            with self._lock:
                self._lifetime_manager.store(implementation_type, instance)
            logger.debug("Published singleton %s built by a child scope", implementation_type.__name__)
            return instance

    def _owned_implementation_types(self, registrations: Iterable[Registration]) -> List[Type]:
        owned: List[Type] = []
        for registration in registrations:
            if registration.lifetime is Lifetime.SCOPED or (
                registration.lifetime is Lifetime.SINGLETON and self._parent is None
            ):
                implementation_type = registration.implementation_type
                if implementation_type not in owned and not self._shares_with_parent(implementation_type):
                    owned.append(implementation_type)
        return owned

    def _shares_with_parent(self, implementation_type: Type) -> bool:
        # A forwarded singleton cached under a type that is also registered scoped
        instance = self._lifetime_manager.get(implementation_type)
        if self._parent is None or instance is None:
            return False
        return self._parent._lifetime_manager.get(implementation_type) is instance

    def _release_instances(self) -> None:
        registrations = [registration for entries in self._registrations.values() for registration in entries]
        self._lifetime_manager.release(self._owned_implementation_types(registrations), dispose=True)
        self._lifetime_manager.clear_cache()
