import collections.abc
from typing import Any, List, get_args, get_origin

from slim_di.domain import IDependencyResolver, IServiceProvider

_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)


class SequenceResolver(IDependencyResolver):
    """Resolves `List[T]`, `Sequence[T]`, `Collection[T]` and `Iterable[T]`.

    The result holds every registered service whose implementation derives
    from `T`, in registration order.

    Example:
        >>> manager.register_resolver(SequenceResolver())
        >>> handlers = manager.get_service(List[IEventHandler])
    """

    def can_resolve(self, service_type: Any) -> bool:
        return get_origin(service_type) in _SEQUENCE_ORIGINS and len(get_args(service_type)) == 1

    def resolve(self, service_provider: IServiceProvider, service_type: Any) -> List[Any]:
        (item_type,) = get_args(service_type)
        return list(service_provider.get_services_of_type(item_type))
