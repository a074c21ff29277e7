"""Registration records and the immutable registry that holds them."""

import inspect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, get_type_hints

from keywire.domain import (
    Blueprint,
    Dependency,
    Factory,
    Lifetime,
    Parameter,
    Provider,
    Registration,
)
from keywire.errors import (
    AmbiguousConstantsError,
    DependencyError,
    UnknownArgumentError,
)
from keywire.introspection import Introspector, SignatureIntrospector
from keywire.keys import NormalizedKey, ServiceKey, normalize_key

__all__ = [
    "Registry",
    "as_provider",
    "inferred_key",
    "make_registration",
    "validate_arguments",
]


@dataclass(frozen=True)
class Registry:
    """An immutable mapping from normalised key to :class:`Registration`.

    Registries are never modified in place. :meth:`with_registration` returns a
    copy, so a container holding a registry cannot observe later changes made
    through a builder or another container.

    Attributes:
        registrations: Registrations keyed by normalised key.
        type_names: Index from a registered type's name to the type itself,
            used to resolve dependencies declared by type or by type name.
    """

    registrations: Mapping[NormalizedKey, Registration] = field(
        default_factory=lambda: MappingProxyType({})
    )
    type_names: Mapping[NormalizedKey, ServiceKey] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @staticmethod
    def of(
        registrations: Mapping[NormalizedKey, Registration],
        type_names: Mapping[NormalizedKey, ServiceKey],
    ) -> "Registry":
        """Snapshot the given mappings into a new registry."""
        return Registry(
            MappingProxyType(dict(registrations)),
            MappingProxyType(dict(type_names)),
        )

    def with_registration(self, registration: Registration) -> "Registry":
        """Return a copy of this registry with ``registration`` added or replaced."""
        registrations = dict(self.registrations)
        registrations[registration.normalized_key] = registration
        type_names = dict(self.type_names)
        if inspect.isclass(registration.key):
            type_names[registration.normalized_key] = registration.key
        return Registry.of(registrations, type_names)

    def get(self, key: NormalizedKey) -> Optional[Registration]:
        return self.registrations.get(key)

    def registered_keys(self) -> set[ServiceKey]:
        return {registration.key for registration in self.registrations.values()}

    def __contains__(self, key: NormalizedKey) -> bool:
        return key in self.registrations

    def __iter__(self):
        return iter(self.registrations)

    def __len__(self) -> int:
        return len(self.registrations)


def as_provider(obj: Provider) -> Provider:
    """Tag a bare class as a :class:`Blueprint` and a bare callable as a :class:`Factory`.

    Raises:
        DependencyError: If ``obj`` is neither a class nor callable.
    """
    if isinstance(obj, (Blueprint, Factory)):
        return obj
    if inspect.isclass(obj):
        return Blueprint(obj)
    if callable(obj):
        return Factory(obj)
    raise DependencyError(f"{obj!r} is not a class or function")


def make_registration(
    key: ServiceKey,
    provider: Provider,
    lifetime: Lifetime,
    args: Optional[Mapping[str, Any]] = None,
    introspector: Optional[Introspector] = None,
) -> Registration:
    """Create the registration for ``key``.

    Blueprints are wrapped in a factory that constructs the class from its
    resolved constructor arguments; the class is kept as the registration's
    origin so that its constructor parameters drive auto-wiring. Plain
    factories have their explicit arguments validated immediately.

    Args:
        key: The key to register under.
        provider: A :class:`Blueprint`, :class:`Factory`, class or callable.
        lifetime: The lifetime of resolved instances.
        args: Literal values and :class:`Dependency` markers by parameter name.
        introspector: Source of parameter descriptions; defaults to
            :class:`SignatureIntrospector`.

    Returns:
        The new :class:`Registration`.

    Raises:
        UnknownArgumentError: If an argument names no parameter of a plain factory.
        AmbiguousConstantsError: If a plain factory is given several arguments
            and none is a :class:`Dependency`.
    """
    introspector = introspector or SignatureIntrospector()
    provider = as_provider(provider)
    explicit_args = MappingProxyType(dict(args or {}))

    if isinstance(provider, Blueprint):
        parameters = introspector.parameters(provider.cls)
        return Registration(
            key,
            _auto_factory(provider.cls, parameters),
            lifetime,
            explicit_args,
            parameters,
            provider.cls,
        )

    parameters = introspector.parameters(provider.func)
    validate_arguments(key, parameters, explicit_args)
    return Registration(key, provider.func, lifetime, explicit_args, parameters)


def validate_arguments(
    key: ServiceKey, parameters: tuple[Parameter, ...], args: Mapping[str, Any]
) -> None:
    """Check explicit arguments against a factory's declared parameters.

    Raises:
        UnknownArgumentError: If an argument names no declared parameter.
        AmbiguousConstantsError: If several arguments are given and none is a
            :class:`Dependency`.
    """
    parameter_names = {parameter.name for parameter in parameters}
    for argument in args:
        if argument not in parameter_names:
            raise UnknownArgumentError(normalize_key(key), argument)

    if len(args) > 1 and not any(isinstance(v, Dependency) for v in args.values()):
        raise AmbiguousConstantsError(normalize_key(key), list(args))


def inferred_key(target: Any) -> ServiceKey:
    """Derive the key a decorated class or function is registered under.

    Classes are keyed by themselves. Functions are keyed by their annotated
    return type if they have one (the raw annotation string when it cannot be
    evaluated), else by their name with any ``make_`` prefix removed.

    Example:
        >>> inferred_key(Database)        # Database
        >>> inferred_key(make_database)   # Database, if annotated "-> Database"
        >>> inferred_key(make_settings)   # "settings", if unannotated
    """
    if inspect.isclass(target):
        return target

    try:
        return_type = get_type_hints(target).get("return", None)
    except (NameError, TypeError):
        # unevaluable forward reference: its string normalises like the type
        return_type = getattr(target, "__annotations__", {}).get("return", None)
    if return_type not in (None, type(None), "None"):
        return return_type

    if target.__name__.startswith("make_"):
        return target.__name__[5:]
    else:
        return target.__name__


def _auto_factory(cls: type, parameters: tuple[Parameter, ...]) -> Callable[..., Any]:
    """Construct ``cls`` from resolved arguments in declared parameter order."""

    def construct(**resolved: Any) -> Any:
        missing = [p.name for p in parameters if p.name not in resolved]
        if missing:
            raise DependencyError(
                f"Cannot resolve parameters {missing} for {cls.__name__}"
            )
        positional = [resolved[p.name] for p in parameters if not p.keyword_only]
        keywords = {p.name: resolved[p.name] for p in parameters if p.keyword_only}
        return cls(*positional, **keywords)

    construct.__name__ = f"construct_{cls.__name__}"
    construct.__qualname__ = construct.__name__
    return construct
