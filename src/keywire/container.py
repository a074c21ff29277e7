"""
Containers resolve service instances from a validated registry.

A :class:`Container` resolves a key by recursively resolving the dependencies of
its registration, invoking the registration's factory with the results, and
caching the instance if the registration is a singleton. Containers are built by
:class:`~keywire.builders.ContainerBuilder`, which validates the dependency graph
before handing one out.

A :class:`TestContainer` is a copy of a container's registry with selected
registrations replaced. It starts with an empty cache, so nothing resolved by the
container it was derived from is shared with it, and deriving it never alters
that container.

Every container registers itself under the key :class:`Container`, so factories
may depend on the container that is resolving them.
"""

import logging
import threading
from types import MappingProxyType
from typing import Any, Mapping, Optional

from keywire.dependencies import describe_dependencies, resolve_constants
from keywire.domain import Lifetime, Provider, Registration
from keywire.errors import (
    DependencyError,
    UnknownDependencyError,
    UnknownOverrideTargetError,
)
from keywire.introspection import Introspector
from keywire.keys import NormalizedKey, ServiceKey, normalize_key
from keywire.registry import Registry, make_registration

__all__ = ["Container", "TestContainer"]

logger = logging.getLogger(__name__)


class Container:
    """Resolves instances from a registry, caching singletons.

    Resolution is guarded by a re-entrant lock held for the whole of a top-level
    :meth:`resolve` call, so each singleton is constructed at most once per
    container even when resolved from several threads.
    """

    def __init__(self, registry: Registry, introspector: Optional[Introspector] = None):
        self._introspector = introspector
        self._registry = registry.with_registration(_self_registration(self))
        self._resolved: dict[NormalizedKey, Any] = {}
        self._lock = threading.RLock()

    @property
    def registry(self) -> Registry:
        return self._registry

    def resolve(self, key: ServiceKey) -> Any:
        """Return the instance registered under ``key``.

        Singletons are created on first resolution and returned from the cache
        thereafter. Transients are created afresh on every call.

        Args:
            key: The key to resolve, in any form that normalises to a registered key.

        Returns:
            The resolved instance.

        Raises:
            UnknownDependencyError: If nothing is registered under ``key`` or
                under a key it transitively depends on.
        """
        normalized_key = normalize_key(key)
        with self._lock:
            if normalized_key in self._resolved:
                return self._resolved[normalized_key]

            registration = self._registry.get(normalized_key)
            if registration is None:
                raise UnknownDependencyError(normalized_key)

            arguments = resolve_constants(registration.explicit_args)
            dependencies = describe_dependencies(registration, self._registry.type_names)
            for parameter_name, dependency_key in dependencies.items():
                arguments[parameter_name] = self.resolve(dependency_key)

            instance = registration.factory(**arguments)

            if registration.is_singleton:
                self._resolved[normalized_key] = instance
                logger.debug("Created singleton %s", normalized_key)
            else:
                logger.debug("Created transient %s", normalized_key)

            return instance

    def registered_keys(self) -> set[ServiceKey]:
        """The original keys of every registration, including :class:`Container`."""
        return self._registry.registered_keys()

    def create_test_container(self) -> "TestContainer":
        """Derive a :class:`TestContainer` with the same registrations and an empty cache."""
        return TestContainer(self._registry, self._introspector)

    def __getitem__(self, key: ServiceKey) -> Any:
        return self.resolve(key)

    def __contains__(self, key: ServiceKey) -> bool:
        return normalize_key(key) in self._registry


class TestContainer(Container):
    """A container whose registrations can be replaced for testing.

    Each override returns a new :class:`TestContainer`; neither the container it
    was derived from nor any earlier container in the chain is modified.

    Example:
        >>> test_container = (
        ...     container.create_test_container()
        ...     .override_singleton_with(Database, lambda: MockDatabase())
        ... )
        >>> test_container.resolve(Service).db  # MockDatabase
    """

    __test__ = False

    def override_with(
        self,
        key: ServiceKey,
        provider: Provider,
        lifetime: Lifetime,
        args: Optional[Mapping[str, Any]] = None,
    ) -> "TestContainer":
        """Return a copy of this container with the registration for ``key`` replaced.

        The replacement's arguments are validated as they would be on
        registration, but the dependency graph is not re-validated: a
        replacement depending on an unregistered key fails when resolved.

        Args:
            key: A key registered in this container.
            provider: The replacement factory or class.
            lifetime: The replacement's lifetime.
            args: Literal values and :class:`~keywire.domain.Dependency` markers
                by parameter name.

        Returns:
            A new :class:`TestContainer` with an empty cache.

        Raises:
            UnknownOverrideTargetError: If ``key`` is not registered.
            DependencyError: If ``key`` is the reserved :class:`Container` key.
            UnknownArgumentError: If an argument names no parameter of the factory.
            AmbiguousConstantsError: If several arguments are given and none is a
                dependency.
        """
        normalized_key = normalize_key(key)
        if normalized_key not in self._registry:
            raise UnknownOverrideTargetError(normalized_key)
        if normalized_key == normalize_key(Container):
            raise DependencyError(f"Cannot override the reserved key {normalized_key}")

        registered_key = self._registry.get(normalized_key).key
        registration = make_registration(
            registered_key, provider, lifetime, args, self._introspector
        )
        logger.debug("Overriding %s with %s %s", normalized_key, lifetime.value, provider)
        return TestContainer(self._registry.with_registration(registration), self._introspector)

    def override_singleton_with(
        self, key: ServiceKey, provider: Provider, args: Optional[Mapping[str, Any]] = None
    ) -> "TestContainer":
        return self.override_with(key, provider, Lifetime.SINGLETON, args)

    def override_transient_with(
        self, key: ServiceKey, provider: Provider, args: Optional[Mapping[str, Any]] = None
    ) -> "TestContainer":
        return self.override_with(key, provider, Lifetime.TRANSIENT, args)


def _self_registration(container: Container) -> Registration:
    return Registration(
        Container,
        lambda: container,
        Lifetime.SINGLETON,
        MappingProxyType({}),
        (),
    )
