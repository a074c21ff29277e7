"""High level entry points for constructing containers."""

import logging
from typing import Any, Callable, Mapping, Optional

from keywire.container import Container
from keywire.domain import Lifetime, Provider
from keywire.errors import DuplicateRegistrationError
from keywire.graph import validate_registry
from keywire.introspection import Introspector, SignatureIntrospector
from keywire.keys import ServiceKey, normalize_key
from keywire.registry import Registry, inferred_key, make_registration

__all__ = ["ContainerBuilder"]

logger = logging.getLogger(__name__)


class ContainerBuilder:
    """Accumulates registrations and builds validated containers from them.

    Building takes a snapshot: registrations made after :meth:`build` are not
    visible to containers already built.

    Example:
        >>> builder = ContainerBuilder()
        >>> builder.singleton("config", lambda: {"dsn": "postgresql://localhost"})
        >>> builder.singleton(Database, make_database, {"config": dependency("config")})
        >>> builder.transient(Service, Service)
        >>> container = builder.build()
        >>> container.resolve(Service)
    """

    def __init__(self, introspector: Optional[Introspector] = None):
        self._introspector = introspector or SignatureIntrospector()
        self._registry = Registry()

    def register(
        self,
        key: ServiceKey,
        provider: Provider,
        lifetime: Lifetime = Lifetime.SINGLETON,
        args: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Register a provider under ``key``.

        Args:
            key: A string, :class:`~keywire.keys.Token` or type.
            provider: A factory function, or a class to be constructed from its
                auto-wired constructor parameters.
            lifetime: Whether the container caches the instance.
            args: Literal values and :class:`~keywire.domain.Dependency` markers
                by parameter name.

        Raises:
            DuplicateRegistrationError: If the key is already registered, or
                normalises to the reserved name ``Container``.
            UnknownArgumentError: If an argument names no parameter of the factory.
            AmbiguousConstantsError: If several arguments are given to a factory
                and none is a dependency.
        """
        normalized_key = normalize_key(key)
        if normalized_key in self._registry or normalized_key == normalize_key(Container):
            raise DuplicateRegistrationError(normalized_key)

        registration = make_registration(key, provider, lifetime, args, self._introspector)
        self._registry = self._registry.with_registration(registration)
        logger.debug(
            "Registered %s as %s %s", normalized_key, lifetime.value, provider
        )

    def singleton(
        self, key: ServiceKey, provider: Provider, args: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.register(key, provider, Lifetime.SINGLETON, args)

    def transient(
        self, key: ServiceKey, provider: Provider, args: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.register(key, provider, Lifetime.TRANSIENT, args)

    def provides(
        self,
        key: Optional[ServiceKey] = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
        args: Optional[Mapping[str, Any]] = None,
    ) -> Callable:
        """Decorator to register a class or function as a provider.

        Args:
            key: Optional key to register under; defaults to the class itself,
                or to a function's annotated return type, or to the function's
                name with any ``make_`` prefix removed.
            lifetime: Whether the container caches the instance.
            args: Literal values and dependency markers by parameter name.

        Returns:
            A decorator that registers its target and returns it unchanged.

        Example:
            @builder.provides()
            class Repository:
                def __init__(self, db: Database):
                    self.db = db

            @builder.provides(lifetime=Lifetime.TRANSIENT)
            def make_session(db: Database) -> Session:
                return db.session()
        """

        def decorator(obj):
            self.register(key if key is not None else inferred_key(obj), obj, lifetime, args)
            return obj

        return decorator

    def build(self) -> Container:
        """Snapshot the registrations and return a validated :class:`Container`.

        Returns:
            A container over the current registrations plus the container itself.

        Raises:
            MissingDependencyError: If a dependency refers to an unregistered key.
            CyclicDependencyError: If the dependency graph contains a cycle.
        """
        container = Container(self._registry, self._introspector)
        build_order = validate_registry(container.registry)
        logger.info("Built container with %d registrations", len(container.registry))
        logger.debug("Dependency order: %s", build_order)
        return container
