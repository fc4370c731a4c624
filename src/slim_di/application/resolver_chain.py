"""Application layer - Ordered resolver overrides."""

from typing import Any, Iterable, List, Optional

from slim_di.domain import IDependencyResolver


class ResolverChain:
    """Resolvers consulted, in registration order, before automatic construction.

    The first resolver whose `can_resolve` returns True supplies the instance.
    """

    def __init__(self, resolvers: Optional[Iterable[IDependencyResolver]] = None) -> None:
        self._resolvers: List[IDependencyResolver] = list(resolvers or [])

    def register(self, resolver: IDependencyResolver) -> None:
        self._resolvers.append(resolver)

    def find(self, service_type: Any) -> Optional[IDependencyResolver]:
        """Return the first resolver claiming `service_type`, if any."""
        for resolver in self._resolvers:
            if resolver.can_resolve(service_type):
                return resolver
        return None

    def can_resolve(self, service_type: Any) -> bool:
        return self.find(service_type) is not None

    def copy(self) -> "ResolverChain":
        return ResolverChain(self._resolvers)

    def clear(self) -> None:
        self._resolvers.clear()
