from enum import Enum


class Lifetime(str, Enum):
    """Defines how long a resolved service instance is cached.

    Attributes:
        TRANSIENT: New instance created on each resolution, never cached.
        SCOPED: One instance per service manager, not shared with child scopes.
        SINGLETON: One instance for the whole scope chain, owned by the root.
    """

    TRANSIENT = "transient"
    SCOPED = "scoped"
    SINGLETON = "singleton"

    def __str__(self) -> str:
        return self.value

    @property
    def is_cached(self) -> bool:
        """Whether instances with this lifetime are kept in the instance cache."""
        return self is not Lifetime.TRANSIENT
