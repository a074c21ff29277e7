"""Introspection of factory and constructor parameters.

The engine only needs to know, for each factory, the ordered names of its
parameters and optionally a declared type for each. That knowledge is supplied
by an :class:`Introspector`. The default :class:`SignatureIntrospector` reads it
from Python signatures and type hints; alternative introspectors can supply it
from anywhere else, e.g. an explicit manifest.
"""

import inspect
from typing import (
    Any,
    Annotated,
    Callable,
    Protocol,
    get_args,
    get_origin,
    get_type_hints,
)

from keywire.domain import Dependency, Parameter
from keywire.errors import DependencyError

__all__ = ["Introspector", "SignatureIntrospector", "describe_parameters"]

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class Introspector(Protocol):
    """Supplies the declared parameters of a factory or class."""

    def parameters(self, target: Callable) -> tuple[Parameter, ...]:
        ...


class SignatureIntrospector:
    """Derive parameters from ``inspect.signature`` and ``typing.get_type_hints``."""

    def parameters(self, target: Callable) -> tuple[Parameter, ...]:
        """Describe each named parameter of ``target``.

        For classes, the constructor parameters are described (``self`` excluded).
        Variadic ``*args`` and ``**kwargs`` parameters are skipped.

        Args:
            target: A function, class, or other callable.

        Returns:
            Parameters in declaration order.

        Raises:
            DependencyError: If the signature of ``target`` cannot be read.

        Example:
            >>> def service(untyped, db: Database, cache: Annotated[Cache, dependency("redis")]):
            ...     pass
            >>> SignatureIntrospector().parameters(service)
            (Parameter("untyped"),
             Parameter("db", Database),
             Parameter("cache", Cache, Dependency("redis")))
        """
        try:
            sig = inspect.signature(target)
        except (TypeError, ValueError) as e:
            raise DependencyError(f"Cannot read the signature of {target!r}") from e

        hints = _type_hints(target)
        return tuple(
            _make_parameter(
                name,
                hints.get(name, param.annotation),
                param.kind is inspect.Parameter.KEYWORD_ONLY,
            )
            for name, param in sig.parameters.items()
            if param.kind not in _VARIADIC
        )


def describe_parameters(target: Callable) -> tuple[Parameter, ...]:
    """Describe ``target``'s parameters with the default introspector."""
    return SignatureIntrospector().parameters(target)


def _type_hints(target: Callable) -> dict[str, Any]:
    """Evaluated annotations of ``target``.

    Annotations that cannot be evaluated (typically a forward reference to a name
    that is not defined at module level) are left out, so the raw annotation from
    the signature is used for those parameters alone and a string annotation
    reaches the type name index as-is.
    """
    hint_target = target.__init__ if inspect.isclass(target) else target
    try:
        return get_type_hints(hint_target, include_extras=True)
    except (NameError, TypeError):
        return _evaluable_hints(hint_target)


class _AnnotationShim:
    """Holds a single annotation so it can be evaluated on its own."""

    def __init__(self, name: str, annotation: Any, globalns: dict[str, Any]):
        self.__annotations__ = {name: annotation}
        self.__globals__ = globalns


def _evaluable_hints(hint_target: Callable) -> dict[str, Any]:
    """Evaluate annotations one at a time, omitting only those that fail."""
    annotations = getattr(hint_target, "__annotations__", None) or {}
    globalns = getattr(inspect.unwrap(hint_target), "__globals__", {})

    hints = {}
    for name, annotation in annotations.items():
        shim = _AnnotationShim(name, annotation, globalns)
        try:
            hints[name] = get_type_hints(shim, include_extras=True)[name]
        except (NameError, TypeError):
            continue
    return hints


def _make_parameter(name: str, annotation: Any, keyword_only: bool) -> Parameter:
    if annotation is inspect.Parameter.empty or annotation is None:
        return Parameter(name, keyword_only=keyword_only)

    if get_origin(annotation) is Annotated:
        base_type, *metadata = get_args(annotation)
        qualifier = next((m for m in metadata if isinstance(m, Dependency)), None)
        return Parameter(name, base_type, qualifier, keyword_only)

    return Parameter(name, annotation, keyword_only=keyword_only)
