import logging
from typing import Any, Callable, Dict, Iterable, Optional, Type

from slim_di.domain import IDisposable, ILifetimeManager, Registration

logger = logging.getLogger(__name__)


class LifetimeManager(ILifetimeManager):
    """Caches scoped and singleton instances of one service manager.

    Instances are keyed by implementation type, so every registration sharing
    an implementation shares its instance. Transient registrations bypass the
    cache entirely.

    Attributes:
        _instances: Cache mapping implementation types to realized instances.
    """

    def __init__(self) -> None:
        """Initialize the lifetime manager with an empty cache."""
        self._instances: Dict[Type, Any] = {}

    def get_or_create(self, registration: Registration, factory: Callable[[], Any]) -> Any:
        """Get existing instance or create new one based on lifetime.

        Args:
            registration: Registration being resolved.
            factory: Function to create new instance if needed.

        Returns:
            Instance according to lifetime rules:
            - Singleton/Scoped: cached instance, created and cached on a miss
            - Transient: always a new instance

        Example:
            >>> registration = Registration(
            ...     service_type=IClock,
            ...     implementation_type=SystemClock,
            ...     lifetime=Lifetime.SINGLETON,
            ... )
            >>> clock = manager.get_or_create(registration, SystemClock)
        """
        if not registration.lifetime.is_cached:
            return factory()

        implementation_type = registration.implementation_type
        if implementation_type in self._instances:
            return self._instances[implementation_type]

        instance = factory()
        # The factory may already have published an instance, keep the first one
        return self._instances.setdefault(implementation_type, instance)

    def get(self, implementation_type: Type) -> Optional[Any]:
        return self._instances.get(implementation_type)

    def store(self, implementation_type: Type, instance: Any) -> None:
        """Cache `instance`, replacing any existing instance of the type."""
        self._instances[implementation_type] = instance

    def release(self, implementation_types: Iterable[Type], dispose: bool = True) -> None:
        """Evict instances from the cache, disposing them if requested.

        Errors raised by `dispose()` are logged and suppressed.

        Args:
            implementation_types: Types whose cached instances are released.
            dispose: Whether disposable instances get `dispose()` called.
        """
        disposed = set()
        for implementation_type in implementation_types:
            instance = self._instances.pop(implementation_type, None)
            if not dispose or id(instance) in disposed or not isinstance(instance, IDisposable):
                continue

            disposed.add(id(instance))
            try:
                instance.dispose()
            except Exception:
                logger.warning("Failed to dispose instance of %s", implementation_type.__name__, exc_info=True)

    def clear_cache(self) -> None:
        """Forget every cached instance without disposing it."""
        self._instances.clear()
