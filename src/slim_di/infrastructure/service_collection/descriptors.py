import logging
from typing import Any, Callable, Dict, Iterable, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator

from slim_di.application import ServiceManager
from slim_di.domain import InvalidOperationError, IServiceManager, IServiceProvider, Lifetime

from .resolvers import SequenceResolver
from .services import (
    IServiceProviderIsService,
    IServiceScopeFactory,
    ServiceProviderIsService,
    ServiceScopeFactory,
)

logger = logging.getLogger(__name__)


class ServiceDescriptor(BaseModel):
    """Describes one service to ingest into a service manager.

    Exactly one of `implementation_type`, `implementation_instance` and
    `implementation_factory` must be set.

    Attributes:
        service_type: The requested type.
        lifetime: Lifetime tag, a `Lifetime` or its string value.
        implementation_type: Concrete class built by constructor discovery.
        implementation_instance: Pre-built instance returned as is.
        implementation_factory: Builder receiving the requesting provider.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_type: Any = Field(..., description="The requested type.")
    lifetime: Any = Field(..., description="Lifetime tag of the service.")
    implementation_type: Optional[Type] = Field(default=None, description="Concrete class to build.")
    implementation_instance: Optional[Any] = Field(default=None, description="Pre-built instance.")
    implementation_factory: Optional[Callable[[IServiceProvider], Any]] = Field(
        default=None,
        description="Builder receiving the requesting provider.",
    )

    @model_validator(mode="after")
    def _check_single_implementation(self) -> "ServiceDescriptor":
        provided = [
            value
            for value in (self.implementation_type, self.implementation_instance, self.implementation_factory)
            if value is not None
        ]
        if len(provided) != 1:
            raise ValueError(
                "Exactly one of implementation_type, implementation_instance "
                "or implementation_factory must be provided"
            )
        return self


_REGISTER_METHODS: Dict[Lifetime, str] = {
    Lifetime.SINGLETON: "register_singleton",
    Lifetime.SCOPED: "register_scoped",
    Lifetime.TRANSIENT: "register_transient",
}


def _parse_lifetime(tag: Any) -> Lifetime:
    try:
        return Lifetime(tag)
    except ValueError as e:
        raise InvalidOperationError(f"Unexpected service lifetime {tag}.") from e


def _register(service_manager: IServiceManager, descriptor: ServiceDescriptor) -> None:
    method = _REGISTER_METHODS[_parse_lifetime(descriptor.lifetime)]

    if descriptor.implementation_factory is not None:
        getattr(service_manager, f"{method}_factory")(descriptor.service_type, descriptor.implementation_factory)
    elif descriptor.implementation_instance is not None:
        instance = descriptor.implementation_instance
        getattr(service_manager, f"{method}_factory")(descriptor.service_type, lambda sp: instance)
    else:
        getattr(service_manager, method)(descriptor.service_type, descriptor.implementation_type)


def build_service_provider(
    descriptors: Iterable[ServiceDescriptor],
    service_manager: Optional[IServiceManager] = None,
) -> IServiceManager:
    """Register every descriptor into a service manager.

    Afterwards the manager also resolves `IServiceScopeFactory`,
    `IServiceProviderIsService` and sequences of services (`List[T]` and
    friends).

    Args:
        descriptors: Ordered descriptors to register.
        service_manager: Manager to register into, a new one if omitted.

    Returns:
        The service manager holding the registrations.

    Raises:
        InvalidOperationError: If a descriptor carries an unsupported lifetime tag.

    Example:
        >>> provider = build_service_provider([
        ...     ServiceDescriptor(service_type=IClock, implementation_type=SystemClock, lifetime="singleton"),
        ...     ServiceDescriptor(service_type=Settings, implementation_instance=settings, lifetime="singleton"),
        ... ])
        >>> clock = provider.get_service(IClock)
    """
    if service_manager is None:
        service_manager = ServiceManager()

    count = 0
    for descriptor in descriptors:
        _register(service_manager, descriptor)
        count += 1

    service_manager.register_resolver(SequenceResolver())
    service_manager.register_scoped(IServiceScopeFactory, ServiceScopeFactory)
    service_manager.register_scoped(IServiceProviderIsService, ServiceProviderIsService)
    logger.debug("Ingested %d service descriptors", count)
    return service_manager
