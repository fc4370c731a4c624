"""Application layer - Exception interception."""

from typing import Any, Callable, Dict, Optional, Type, TypeVar

from slim_di.domain import (
    ExceptionHandler,
    FactoryInvocationError,
    InvalidOperationError,
    IServiceProvider,
)

T = TypeVar("T")


class ExceptionGuard:
    """Runs service manager operations and routes their errors to handlers.

    Handlers are keyed by the exact exception type. A handler returns True
    when the error should be re-raised and False when it should be swallowed,
    in which case the guarded call returns its default value.

    Attributes:
        _handlers: Mapping from exception type to handler.
    """

    def __init__(self, handlers: Optional[Dict[Type[BaseException], ExceptionHandler]] = None) -> None:
        self._handlers: Dict[Type[BaseException], ExceptionHandler] = dict(handlers or {})

    def add_handler(self, error_type: Type[BaseException], handler: ExceptionHandler) -> None:
        """Register the handler for `error_type`.

        Raises:
            InvalidOperationError: If a handler for `error_type` already exists.
        """
        if error_type in self._handlers:
            raise InvalidOperationError(f"An exception handler for {error_type.__name__} is already registered")
        self._handlers[error_type] = handler

    def run(self, provider: IServiceProvider, action: Callable[[], T], default: Any = None) -> T:
        """Run `action`, returning `default` if a handler swallows its error."""
        try:
            return action()
        except Exception as error:
            self.handle(provider, error)
            return default

    def handle(self, provider: IServiceProvider, error: Exception) -> None:
        """Re-raise `error` unless its handler decides to swallow it."""
        if isinstance(error, FactoryInvocationError) and isinstance(error.__cause__, Exception):
            error = error.__cause__

        handler = self._handlers.get(type(error))
        if handler is None or handler(provider, error):
            raise error

    def copy(self) -> "ExceptionGuard":
        return ExceptionGuard(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()
