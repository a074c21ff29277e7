"""Derivation of dependency edges from a registration.

A registration's declared parameters are matched against its explicit arguments,
``Annotated`` qualifiers, declared types and finally parameter names, giving an
ordered mapping from parameter name to the key of the service that fills it.
Parameters bound to literal values are not edges; see :func:`resolve_constants`.
"""

from typing import Any, Mapping

from keywire.domain import Dependency, Parameter, Registration
from keywire.keys import NormalizedKey, ServiceKey, normalize_key

__all__ = ["describe_dependencies", "resolve_constants"]


def describe_dependencies(
    registration: Registration, type_names: Mapping[NormalizedKey, ServiceKey]
) -> dict[str, ServiceKey]:
    """Map each injected parameter of ``registration`` to the key it is resolved from.

    In priority order, a parameter is resolved from:

    1. a :class:`Dependency` marker in the explicit arguments;
    2. nothing, if the explicit arguments bind it to a literal value;
    3. a :class:`Dependency` in its ``Annotated`` metadata;
    4. its declared type, via ``type_names`` when that names a registered type;
    5. its own name.

    Args:
        registration: The registration whose parameters are described.
        type_names: Index from type name to the key registered for that type.

    Returns:
        Parameter names mapped to service keys, in declaration order.
    """
    dependencies: dict[str, ServiceKey] = {}
    for parameter in registration.parameters:
        if parameter.name in registration.explicit_args:
            value = registration.explicit_args[parameter.name]
            if isinstance(value, Dependency):
                dependencies[parameter.name] = value.key
            continue

        dependencies[parameter.name] = _inferred_key(parameter, type_names)

    return dependencies


def resolve_constants(explicit_args: Mapping[str, Any]) -> dict[str, Any]:
    """The literal (non-:class:`Dependency`) explicit arguments."""
    return {
        name: value
        for name, value in explicit_args.items()
        if not isinstance(value, Dependency)
    }


def _inferred_key(
    parameter: Parameter, type_names: Mapping[NormalizedKey, ServiceKey]
) -> ServiceKey:
    if parameter.qualifier is not None:
        return parameter.qualifier.key
    if parameter.declared_type is not None:
        return type_names.get(
            normalize_key(parameter.declared_type), parameter.declared_type
        )
    return parameter.name
