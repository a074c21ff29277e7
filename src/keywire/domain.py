"""Domain models used throughout the framework."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from keywire.keys import NormalizedKey, ServiceKey, normalize_key

__all__ = [
    "Lifetime",
    "Dependency",
    "dependency",
    "Parameter",
    "Blueprint",
    "Factory",
    "Provider",
    "Registration",
]


class Lifetime(Enum):
    """How long a resolved instance lives.

    Values:
        SINGLETON: One instance per container, created on first resolution.
        TRANSIENT: A new instance on every resolution.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class Dependency:
    """Marks an explicit argument as "resolve this key" rather than a literal value.

    Attributes:
        key: The key of the service to inject.
    """

    key: ServiceKey


def dependency(key: ServiceKey) -> Dependency:
    """Shorthand for :class:`Dependency`.

    Example:
        >>> builder.singleton(Service, make_service, {"db": dependency("special_db")})
    """
    return Dependency(key)


@dataclass(frozen=True)
class Parameter:
    """A declared parameter of a factory or blueprint constructor.

    Attributes:
        name: The parameter name, which is also the keyword the factory receives.
        declared_type: The annotated type, the raw annotation string for an
            unevaluable forward reference, or None if unannotated.
        qualifier: A :class:`Dependency` taken from ``Annotated`` metadata, if any.
        keyword_only: Whether the parameter can only be passed by keyword.
    """

    name: str
    declared_type: Any = None
    qualifier: Optional[Dependency] = None
    keyword_only: bool = False


@dataclass(frozen=True)
class Blueprint:
    """A constructible type registered as its own factory."""

    cls: type


@dataclass(frozen=True)
class Factory:
    """A plain callable registered as a factory."""

    func: Callable[..., Any]


Provider = Any
"""A :class:`Blueprint`, a :class:`Factory`, or a bare class or callable."""


@dataclass(frozen=True)
class Registration:
    """Stored description of how to produce the service for one key.

    Attributes:
        key: The key as originally registered.
        factory: Callable invoked with the resolved arguments as keywords.
        lifetime: Whether instances are cached per container.
        explicit_args: Literal values and :class:`Dependency` markers by parameter name.
        parameters: Declared parameters of the factory, or of ``origin`` when set.
        origin: The blueprint class for auto-wired registrations.
    """

    key: ServiceKey
    factory: Callable[..., Any]
    lifetime: Lifetime
    explicit_args: Mapping[str, Any]
    parameters: tuple[Parameter, ...]
    origin: Optional[type] = None

    @property
    def normalized_key(self) -> NormalizedKey:
        return normalize_key(self.key)

    @property
    def is_singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON
