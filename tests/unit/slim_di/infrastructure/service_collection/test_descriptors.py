"""Unit tests for service descriptor ingestion."""

from abc import ABC
from typing import Collection, Iterable, List, Sequence

import pytest
from pydantic import ValidationError

from slim_di.application.container import ServiceManager
from slim_di.domain import InvalidOperationError, Lifetime
from slim_di.infrastructure.service_collection import (
    IServiceProviderIsService,
    IServiceScopeFactory,
    SequenceResolver,
    ServiceDescriptor,
    ServiceScope,
    build_service_provider,
)


class IPlugin(ABC):
    pass


class AuditPlugin(IPlugin):
    pass


class MetricsPlugin(IPlugin):
    pass


class Settings:
    def __init__(self, url: str = "sqlite://"):
        self.url = url


class TestServiceDescriptor:
    """Test cases for the ServiceDescriptor model."""

    def test_type_descriptor(self):
        """Test creating a descriptor with an implementation type."""
        descriptor = ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="singleton")

        assert descriptor.implementation_type is AuditPlugin
        assert descriptor.implementation_instance is None
        assert descriptor.implementation_factory is None

    def test_requires_one_implementation(self):
        """Test that a descriptor without implementation is rejected."""
        with pytest.raises(ValidationError, match="Exactly one"):
            ServiceDescriptor(service_type=IPlugin, lifetime="singleton")

    def test_rejects_several_implementations(self):
        """Test that a descriptor with two implementations is rejected."""
        with pytest.raises(ValidationError, match="Exactly one"):
            ServiceDescriptor(
                service_type=IPlugin,
                implementation_type=AuditPlugin,
                implementation_instance=AuditPlugin(),
                lifetime="singleton",
            )


class TestBuildServiceProvider:
    """Test cases for build_service_provider."""

    def test_creates_manager_when_omitted(self):
        """Test that a new service manager is created by default."""
        provider = build_service_provider([])
        assert isinstance(provider, ServiceManager)

    def test_registers_into_given_manager(self):
        """Test that an existing manager receives the registrations."""
        manager = ServiceManager()

        provider = build_service_provider(
            [ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime=Lifetime.SCOPED)],
            manager,
        )

        assert provider is manager
        assert manager.get_registrations()[IPlugin][0].lifetime is Lifetime.SCOPED

    @pytest.mark.parametrize("tag", ["singleton", "scoped", "transient"])
    def test_lifetime_tags(self, tag):
        """Test that every lifetime tag maps to its lifetime."""
        provider = build_service_provider(
            [ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime=tag)]
        )

        assert provider.get_registrations()[IPlugin][0].lifetime is Lifetime(tag)

    def test_unknown_lifetime_raises(self):
        """Test that an unsupported lifetime tag is rejected."""
        with pytest.raises(InvalidOperationError, match="Unexpected service lifetime forever."):
            build_service_provider(
                [ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="forever")]
            )

    def test_instance_descriptor(self):
        """Test that instance descriptors return the given instance."""
        settings = Settings("postgres://")

        provider = build_service_provider(
            [ServiceDescriptor(service_type=Settings, implementation_instance=settings, lifetime="singleton")]
        )

        assert provider.get_service(Settings) is settings

    def test_factory_descriptor(self):
        """Test that factory descriptors receive the provider."""
        received = []

        def factory(sp):
            received.append(sp)
            return Settings("mysql://")

        provider = build_service_provider(
            [ServiceDescriptor(service_type=Settings, implementation_factory=factory, lifetime="transient")]
        )

        assert provider.get_service(Settings).url == "mysql://"
        assert received == [provider]

    def test_registers_scope_factory(self):
        """Test that the scope factory creates child scopes of the provider."""
        provider = build_service_provider(
            [ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="scoped")]
        )

        scope_factory = provider.get_service(IServiceScopeFactory)

        with scope_factory.create_scope() as scope:
            assert isinstance(scope, ServiceScope)
            assert scope.service_provider.parent is provider
            plugin = scope.service_provider.get_service(IPlugin)
            assert plugin is scope.service_provider.get_service(IPlugin)
            assert plugin is not provider.get_service(IPlugin)

    def test_registers_is_service(self):
        """Test that IServiceProviderIsService answers registration queries."""
        provider = build_service_provider(
            [ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="singleton")]
        )

        is_service = provider.get_service(IServiceProviderIsService)

        assert is_service.is_service(IPlugin)
        assert is_service.is_service(List[IPlugin])
        assert not is_service.is_service(Settings)

    def test_registers_sequence_resolver(self):
        """Test that sequences of services can be resolved."""
        provider = build_service_provider(
            [
                ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="singleton"),
                ServiceDescriptor(service_type=IPlugin, implementation_type=MetricsPlugin, lifetime="transient"),
            ]
        )

        plugins = provider.get_service(List[IPlugin])

        assert [type(plugin) for plugin in plugins] == [AuditPlugin, MetricsPlugin]

    def test_sequence_injected_into_constructor(self):
        """Test that constructors can depend on every implementation."""

        class PluginHost:
            def __init__(self, plugins: Sequence[IPlugin]):
                self.plugins = plugins

        provider = build_service_provider(
            [
                ServiceDescriptor(service_type=IPlugin, implementation_type=AuditPlugin, lifetime="singleton"),
                ServiceDescriptor(service_type=IPlugin, implementation_type=MetricsPlugin, lifetime="singleton"),
                ServiceDescriptor(service_type=PluginHost, implementation_type=PluginHost, lifetime="transient"),
            ]
        )

        assert len(provider.get_service(PluginHost).plugins) == 2


class TestSequenceResolver:
    """Test cases for SequenceResolver."""

    @pytest.mark.parametrize("service_type", [List[IPlugin], Sequence[IPlugin], Collection[IPlugin], Iterable[IPlugin]])
    def test_can_resolve_sequences(self, service_type):
        """Test the supported sequence shapes."""
        assert SequenceResolver().can_resolve(service_type)

    @pytest.mark.parametrize("service_type", [IPlugin, List, int, dict])
    def test_rejects_other_types(self, service_type):
        """Test that plain and unparameterised types are not claimed."""
        assert not SequenceResolver().can_resolve(service_type)

    def test_empty_sequence(self):
        """Test that a capability without implementations resolves to an empty list."""
        manager = ServiceManager()
        manager.register_resolver(SequenceResolver())

        assert manager.get_service(List[IPlugin]) == []
