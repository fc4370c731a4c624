import inspect
import logging
from typing import Any, Callable, Dict, List, Tuple, Type, get_type_hints

from slim_di.domain import (
    ConstructorCandidate,
    DependencyResolutionError,
    DIException,
    FactoryInvocationError,
    IConstructorResolver,
)
from slim_di.domain import markers

logger = logging.getLogger(__name__)

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class ConstructorResolver(IConstructorResolver):
    """Instantiates classes by introspecting their constructors and type hints.

    Candidates are `__init__` and any classmethod or staticmethod marked with
    `injectable_constructor`, minus those marked `do_not_inject`. They are
    tried by ascending priority; the first whose parameters can all be
    resolved is invoked.
    """

    def resolve_dependencies(
        self,
        implementation_type: Type,
        resolve_parameter: Callable[[Any], Any],
    ) -> Any:
        """Resolve constructor dependencies of `implementation_type` and create an instance.

        Args:
            implementation_type: The type to instantiate.
            resolve_parameter: Resolves a parameter type, raising
                DependencyResolutionError when it cannot.

        Returns:
            Instance with all dependencies injected.

        Raises:
            DependencyResolutionError: If no candidate can be satisfied.
            FactoryInvocationError: If the chosen constructor raises.

        Example:
            >>> class UserService:
            ...     def __init__(self, repository: UserRepository, clock: IClock):
            ...         self.repository = repository
            ...         self.clock = clock
            >>>
            >>> resolver = ConstructorResolver()
            >>> instance = resolver.resolve_dependencies(UserService, manager.get_service)
        """
        candidates = self.get_candidates(implementation_type)
        if not candidates:
            raise DependencyResolutionError(implementation_type, "No injectable constructor found")

        failures: List[str] = []
        for candidate in candidates:
            try:
                args, kwargs = self._resolve_arguments(implementation_type, candidate, resolve_parameter)
            except DependencyResolutionError as e:
                logger.debug("Constructor %s.%s rejected: %s", implementation_type.__name__, candidate.name, e.reason)
                failures.append(f"{candidate.name}: {e.reason}")
                continue

            return self._invoke(implementation_type, candidate, args, kwargs)

        raise DependencyResolutionError(
            implementation_type,
            f"No suitable constructor was found ({'; '.join(failures)})",
        )

    @staticmethod
    def get_candidates(implementation_type: Type) -> List[ConstructorCandidate]:
        """List the constructor candidates of `implementation_type` in the order they are tried."""
        candidates = []
        members = vars(implementation_type)

        if "__init__" not in members:
            inherited = implementation_type.__init__
            if not markers.is_excluded(inherited):
                candidates.append(
                    ConstructorCandidate(
                        name="__init__",
                        function=inherited,
                        invoke=implementation_type,
                        priority=markers.priority_of(inherited),
                        order=-1,
                    )
                )

        for order, (name, member) in enumerate(members.items()):
            if markers.is_excluded(member):
                continue

            if name == "__init__":
                candidates.append(
                    ConstructorCandidate(
                        name=name,
                        function=member,
                        invoke=implementation_type,
                        priority=markers.priority_of(member),
                        order=order,
                    )
                )
            elif isinstance(member, (classmethod, staticmethod)) and markers.is_constructor(member):
                candidates.append(
                    ConstructorCandidate(
                        name=name,
                        function=member.__func__,
                        invoke=getattr(implementation_type, name),
                        priority=markers.priority_of(member),
                        order=order,
                    )
                )

        return sorted(candidates, key=lambda candidate: candidate.sort_key)

    @staticmethod
    def _resolve_arguments(
        implementation_type: Type,
        candidate: ConstructorCandidate,
        resolve_parameter: Callable[[Any], Any],
    ) -> Tuple[List[Any], Dict[str, Any]]:
        try:
            signature = inspect.signature(candidate.function)
            # Slot wrappers such as object.__init__ carry no annotations
            type_hints = get_type_hints(candidate.function) if inspect.isfunction(candidate.function) else {}
        except Exception as e:
            raise DependencyResolutionError(
                implementation_type,
                f"Cannot inspect constructor '{candidate.name}': {e}",
            ) from e

        parameters = list(signature.parameters.values())
        # self for __init__, cls for classmethods
        if not isinstance(inspect.getattr_static(implementation_type, candidate.name), staticmethod):
            parameters = parameters[1:]

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        # Set once a positional-only parameter keeps its default; later ones must keep theirs too
        positional_gap = False
        for param in parameters:
            positional_only = param.kind is inspect.Parameter.POSITIONAL_ONLY
            if param.kind in _VARIADIC or (positional_only and positional_gap):
                continue

            has_default = param.default is not inspect.Parameter.empty
            if param.name not in type_hints:
                if has_default:
                    positional_gap = positional_gap or positional_only
                    continue
                raise DependencyResolutionError(
                    implementation_type,
                    f"Parameter '{param.name}' lacks type hint and has no default value",
                )

            try:
                value = resolve_parameter(type_hints[param.name])
            except DependencyResolutionError as e:
                if has_default:
                    positional_gap = positional_gap or positional_only
                    continue
                raise DependencyResolutionError(
                    implementation_type,
                    f"Failed to resolve dependency for parameter '{param.name}': {e}",
                ) from e

            if positional_only:
                args.append(value)
            else:
                kwargs[param.name] = value

        return args, kwargs

    @staticmethod
    def _invoke(
        implementation_type: Type,
        candidate: ConstructorCandidate,
        args: List[Any],
        kwargs: Dict[str, Any],
    ) -> Any:
        try:
            return candidate.invoke(*args, **kwargs)
        except DIException:
            raise
        except Exception as e:
            raise FactoryInvocationError(implementation_type, e) from e
