from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from slim_di.domain.enums import Lifetime

if TYPE_CHECKING:
    from slim_di.domain.interfaces import IServiceProvider


class Registration(BaseModel):
    """Value object representing one service registration.

    Attributes:
        service_type: The requested type the registration answers to.
        implementation_type: The concrete class built for the request.
        lifetime: How long the instance should live.
        factory: Optional builder replacing constructor discovery.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_type: Any = Field(..., description="The requested type, usually an interface.")
    implementation_type: Type = Field(..., description="The concrete class that is instantiated.")
    lifetime: Lifetime = Field(..., description="The lifetime of the registered service.")
    factory: Optional[Callable[["IServiceProvider"], Any]] = Field(
        default=None,
        description="Builder receiving the requesting service manager and returning an instance.",
    )

    def with_factory(self, factory: Callable[["IServiceProvider"], Any]) -> "Registration":
        """Return a copy of this registration that is built by `factory`."""
        return self.model_copy(update={"factory": factory})


class ConstructorCandidate(BaseModel):
    """A way of instantiating an implementation type.

    Attributes:
        name: Attribute name of the constructor on the class.
        function: Underlying function carrying the type hints.
        invoke: Callable that creates the instance from keyword arguments.
        priority: Declared priority, lower runs first. None sorts last.
        order: Position of the constructor in the class body.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    function: Callable[..., Any]
    invoke: Callable[..., Any]
    priority: Optional[int] = None
    order: int = 0

    @property
    def sort_key(self) -> Tuple[bool, int, int]:
        return (self.priority is None, self.priority or 0, self.order)
