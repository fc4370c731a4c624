from typing import Awaitable, Callable, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from slim_di.domain import IServiceManager, IServiceProvider

T = TypeVar("T")

REQUEST_STATE_ATTRIBUTE = "service_manager"


def create_fastapi_dependency(service_provider: IServiceProvider, service_type: Type[T]) -> Callable[[], Optional[T]]:
    """Create a FastAPI Depends() callable that resolves from the service manager.

    The resolved instance lifetime follows the registration in the service
    manager (singleton, scoped or transient).

    Args:
        service_provider: The service manager to resolve services from.
        service_type: The type to resolve when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> manager = ServiceManager()
        >>> manager.register_singleton(IUserRepository, SqlUserRepository)
        >>>
        >>> get_user_repo = create_fastapi_dependency(manager, IUserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: IUserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Optional[T]:
        """Resolve the service from the service manager."""
        return service_provider.get_service(service_type)

    return dependency


def get_request_scope(request: Request) -> IServiceManager:
    """Return the scope created for `request` by ScopedServiceManagerMiddleware.

    Raises:
        RuntimeError: If the middleware is not installed.
    """
    scope: Optional[IServiceManager] = getattr(request.state, REQUEST_STATE_ATTRIBUTE, None)
    if scope is None:
        raise RuntimeError(
            "Request does not have a scoped service manager. Did you forget to add ScopedServiceManagerMiddleware?"
        )
    return scope


def create_scoped_dependency(service_type: Type[T]) -> Callable[[Request], Optional[T]]:
    """Create a FastAPI dependency that resolves from the request scope.

    Each request gets its own instance of scoped services. Requires the
    ScopedServiceManagerMiddleware to be installed.

    Args:
        service_type: The type to resolve from the request scope.

    Returns:
        A callable that resolves from the request scope.

    Example:
        >>> app.add_middleware(ScopedServiceManagerMiddleware, service_manager=manager)
        >>>
        >>> get_request_context = create_scoped_dependency(RequestContext)
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def scoped_dependency(request: Request) -> Optional[T]:
        """Resolve from the request scope."""
        return get_request_scope(request).get_service(service_type)

    return scoped_dependency


class ScopedServiceManagerMiddleware(BaseHTTPMiddleware):
    """Middleware that creates a child scope for each request.

    Scoped services are isolated per request and disposed once the response
    has been produced. The scope is available as `request.state.service_manager`.

    Attributes:
        service_manager: The service manager scopes are created from.

    Example:
        >>> manager = ServiceManager()
        >>> manager.register_singleton(DatabaseConnection)
        >>> manager.register_scoped(UnitOfWork)
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(ScopedServiceManagerMiddleware, service_manager=manager)
    """

    def __init__(self, app: FastAPI, service_manager: IServiceManager):
        """Initialize the middleware with a parent service manager.

        Args:
            app: The FastAPI/Starlette application.
            service_manager: The service manager scopes are created from.
        """
        super().__init__(app)
        self.service_manager = service_manager

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Create a scope for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        scope = self.service_manager.create_scope()
        setattr(request.state, REQUEST_STATE_ATTRIBUTE, scope)

        try:
            response = await call_next(request)
            return response
        finally:
            # Dispose scoped services after the request
            scope.dispose()
