from typing import Any, Optional


def _type_name(service_type: Any) -> str:
    return getattr(service_type, "__name__", repr(service_type))


class DIException(Exception):
    """Base exception for DI-related errors."""


class DependencyResolutionError(DIException):
    """Raised when a service cannot be resolved.

    This occurs when:
    - No registration, resolver or self marker matches the requested type.
    - Every constructor candidate of the implementation failed.
    - The implementation has no usable constructor.
    - A scope could not obtain a singleton from its parent.

    Attributes:
        service_type: The requested type that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, service_type: Any, reason: Optional[str] = None) -> None:
        self.service_type = service_type
        self.reason = reason
        message = f"Cannot resolve service of type: {_type_name(service_type)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class InvalidOperationError(DIException):
    """Raised when an operation is not valid for the current state.

    This occurs when:
    - Registering into a read-only scope.
    - Ingesting a descriptor with an unsupported lifetime tag.
    - Registering a second exception handler for the same exception type.
    """


class NotSupportedError(InvalidOperationError):
    """Raised for operations the adapters deliberately do not implement."""


class ArgumentNullError(DIException, ValueError):
    """Raised when a required argument is missing.

    Attributes:
        argument_name: Name of the missing argument.
    """

    def __init__(self, argument_name: str) -> None:
        self.argument_name = argument_name
        super().__init__(f"Argument '{argument_name}' cannot be None")


class FactoryInvocationError(DIException):
    """Wraps an error raised by user code while building an instance.

    The exception guard strips this layer before dispatching to handlers or
    re-raising, so callers observe the original error.

    Attributes:
        service_type: The type whose factory or constructor raised.
    """

    def __init__(self, service_type: Any, error: BaseException) -> None:
        self.service_type = service_type
        super().__init__(f"Error while building {_type_name(service_type)}: {error}")
