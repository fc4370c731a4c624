"""Integration tests for the resolution scenarios and lifetime properties."""

from abc import ABC, abstractmethod

import pytest

from slim_di import (
    DependencyResolutionError,
    IDependencyResolver,
    InvalidOperationError,
    ServiceManager,
)


class INotifier(ABC):
    @abstractmethod
    def notify(self, message: str) -> str:
        pass


class EmailNotifier(INotifier):
    def notify(self, message: str) -> str:
        return f"email: {message}"


class SmsNotifier(INotifier):
    def notify(self, message: str) -> str:
        return f"sms: {message}"


class ITemplateStore(ABC):
    pass


class TemplatedNotifier(INotifier):
    def __init__(self, templates: ITemplateStore):
        self.templates = templates

    def notify(self, message: str) -> str:
        return message


class Disposable:
    def __init__(self):
        self.disposed = 0

    def dispose(self):
        self.disposed += 1


class TestScenarios:
    """End-to-end scenarios over a single service manager and its scopes."""

    def test_singleton_with_parameterless_constructor(self):
        """Test that a parameterless singleton is returned twice by reference."""
        manager = ServiceManager()
        manager.register_singleton(INotifier, EmailNotifier)

        first = manager.get_service(INotifier)
        second = manager.get_service(INotifier)

        assert first is not None
        assert first is second

    def test_transient_with_unregistered_dependency(self):
        """Test that a missing constructor dependency fails resolution."""
        manager = ServiceManager()
        manager.register_transient(INotifier, TemplatedNotifier)

        with pytest.raises(DependencyResolutionError):
            manager.get_service(INotifier)

    def test_services_of_capability(self):
        """Test that both singleton implementations of a capability are yielded."""
        manager = ServiceManager()
        manager.register_singleton(EmailNotifier, register_all_interfaces=True)
        manager.register_singleton(SmsNotifier, register_all_interfaces=True)

        notifiers = list(manager.get_services_of_type(INotifier))

        assert len(notifiers) == 2
        assert {type(notifier) for notifier in notifiers} == {EmailNotifier, SmsNotifier}

    def test_scoped_registration_only_on_child(self):
        """Test that a child-only scoped service is invisible to the parent."""
        manager = ServiceManager(allow_scoped_manager_modifications=True)
        scope = manager.create_scope()
        scope.register_scoped(Disposable)

        with pytest.raises(DependencyResolutionError, match="No registered service"):
            manager.get_service(Disposable)

        instance = scope.get_service(Disposable)
        assert instance is scope.get_service(Disposable)
        assert manager.create_scope().is_registered(Disposable) is False

    def test_swallowed_read_only_mutation(self):
        """Test that a swallow handler observes the read-only error exactly once."""
        seen = []

        def handler(sp, error):
            seen.append(error)
            return False

        manager = ServiceManager()
        scope = manager.create_scope()
        scope.handle_exception(InvalidOperationError, handler)

        scope.register_transient(EmailNotifier)

        assert len(seen) == 1
        assert isinstance(seen[0], InvalidOperationError)
        assert not scope.is_registered(EmailNotifier)


class TestLifetimeProperties:
    """Lifetime guarantees across containers and scopes."""

    def test_singleton_identity_across_scopes(self):
        """Test that a singleton is identical in the root and nested scopes."""
        manager = ServiceManager()
        manager.register_singleton(INotifier, EmailNotifier)

        child = manager.create_scope()
        grandchild = child.create_scope()

        assert manager.get_service(INotifier) is child.get_service(INotifier)
        assert child.get_service(INotifier) is grandchild.get_service(INotifier)

    def test_transient_instances_are_distinct(self):
        """Test that transient resolutions never repeat an instance."""
        manager = ServiceManager()
        manager.register_transient(INotifier, EmailNotifier)

        instances = [manager.get_service(INotifier) for _ in range(5)]

        assert len({id(instance) for instance in instances}) == 5

    def test_scoped_instances_per_container(self):
        """Test that parent and child hold distinct scoped instances."""
        manager = ServiceManager()
        manager.register_scoped(INotifier, EmailNotifier)
        scope = manager.create_scope()

        assert manager.get_service(INotifier) is manager.get_service(INotifier)
        assert scope.get_service(INotifier) is scope.get_service(INotifier)
        assert manager.get_service(INotifier) is not scope.get_service(INotifier)

    @pytest.mark.parametrize("lifetime, expected_calls", [("transient", 3), ("singleton", 1)])
    def test_resolver_calls_follow_lifetime(self, lifetime, expected_calls):
        """Test that resolver results are cached according to the registration."""
        calls = []

        class CountingResolver(IDependencyResolver):
            def can_resolve(self, service_type):
                return service_type is INotifier

            def resolve(self, service_provider, service_type):
                calls.append(service_type)
                return SmsNotifier()

        manager = ServiceManager()
        getattr(manager, f"register_{lifetime}")(INotifier, EmailNotifier)
        manager.register_resolver(CountingResolver())

        for _ in range(3):
            assert isinstance(manager.get_service(INotifier), SmsNotifier)

        assert len(calls) == expected_calls

    def test_disposal_ownership(self):
        """Test that a scope disposes its scoped instances and leaves singletons to the root."""

        class SharedResource(Disposable):
            pass

        class RequestResource(Disposable):
            pass

        manager = ServiceManager()
        manager.register_singleton(SharedResource)
        manager.register_scoped(RequestResource)

        scope = manager.create_scope()
        shared = scope.get_service(SharedResource)
        request = scope.get_service(RequestResource)
        root_request = manager.get_service(RequestResource)

        scope.dispose()
        assert request.disposed == 1
        assert shared.disposed == 0
        assert root_request.disposed == 0

        manager.dispose()
        assert shared.disposed == 1
        assert root_request.disposed == 1
        assert request.disposed == 1

    def test_resolution_fails_after_dispose(self):
        """Test that a disposed manager no longer resolves its services."""
        manager = ServiceManager()
        manager.register_singleton(INotifier, EmailNotifier)
        manager.dispose()

        with pytest.raises(DependencyResolutionError):
            manager.get_service(INotifier)
