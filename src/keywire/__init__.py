"""Keywire dependency injection engine.

Keywire resolves services from a declarative set of registrations. Each
registration says how to make the service for one key, whether the instance is
shared (singleton) or made afresh per request (transient), and which of its
factory's parameters are literal values and which are other services. The whole
dependency graph is checked for missing and cyclic dependencies once, when the
container is built, before anything is instantiated.

Key Features:
    - String, token and type keys, interchangeable by name
    - Explicit dependency markers, or auto-wiring from type hints and parameter names
    - Singleton and transient lifetimes
    - Static detection of missing and cyclic dependencies
    - Test containers with overridden registrations and isolated caches

Basic Usage:
    >>> from keywire.builders import ContainerBuilder
    >>> from keywire.domain import dependency
    >>>
    >>> builder = ContainerBuilder()
    >>> builder.singleton("dsn", lambda: "postgresql://localhost")
    >>> builder.singleton(Database, lambda dsn: Database(dsn), {"dsn": dependency("dsn")})
    >>> builder.singleton(Repository, Repository)   # auto-wired from Repository(db: Database)
    >>>
    >>> container = builder.build()
    >>> repository = container.resolve(Repository)

The framework consists of several core modules:
    - keys: Service keys and their normalisation
    - domain: Core domain models (Dependency, Registration, Lifetime)
    - introspection: Parameter discovery from signatures and type hints
    - dependencies: Derivation of dependency edges from registrations
    - registry: Immutable registries and registration construction
    - graph: Static validation of the dependency graph
    - container: Resolution, caching and test overrides
    - builders: Container construction
    - errors: Framework-specific exceptions
"""
