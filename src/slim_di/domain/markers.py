"""Constructor metadata consumed by the constructor resolver.

Both decorators only attach attributes to the decorated function; they do not
change its behaviour.

Example:
    >>> class Repository:
    ...     @do_not_inject
    ...     def __init__(self, connection: Connection):
    ...         self.connection = connection
    ...
    ...     @injectable_constructor(priority=0)
    ...     @classmethod
    ...     def from_settings(cls, settings: Settings) -> "Repository":
    ...         return cls(Connection(settings.url))
"""

from typing import Any, Callable, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

DO_NOT_INJECT_ATTRIBUTE = "__slim_di_do_not_inject__"
CONSTRUCTOR_ATTRIBUTE = "__slim_di_constructor__"
PRIORITY_ATTRIBUTE = "__slim_di_priority__"


def _target(member: Any) -> Any:
    # classmethod and staticmethod objects keep the real function in __func__
    return getattr(member, "__func__", member)


def do_not_inject(member: F) -> F:
    """Exclude a constructor from automatic injection."""
    setattr(_target(member), DO_NOT_INJECT_ATTRIBUTE, True)
    return member


def injectable_constructor(priority: Optional[int] = None) -> Callable[[F], F]:
    """Mark a classmethod or staticmethod as an alternative constructor.

    Applied to `__init__` it only sets the priority.

    Args:
        priority: Lower values are tried first. Constructors without a
            priority are tried after every prioritised one.
    """

    def decorator(member: F) -> F:
        target = _target(member)
        setattr(target, CONSTRUCTOR_ATTRIBUTE, True)
        setattr(target, PRIORITY_ATTRIBUTE, priority)
        return member

    return decorator


def is_excluded(member: Any) -> bool:
    return bool(getattr(_target(member), DO_NOT_INJECT_ATTRIBUTE, False))


def is_constructor(member: Any) -> bool:
    return bool(getattr(_target(member), CONSTRUCTOR_ATTRIBUTE, False))


def priority_of(member: Any) -> Optional[int]:
    return getattr(_target(member), PRIORITY_ATTRIBUTE, None)
