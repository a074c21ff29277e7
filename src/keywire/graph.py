"""Static validation of a registry's dependency graph.

Each registration is a node; each dependency edge derived by
:func:`~keywire.dependencies.describe_dependencies` is a directed edge to the
node it depends on. Validation walks the graph depth-first from every node and
fails on the first edge that points at an unregistered key or closes a cycle.
Nothing is instantiated.
"""

from typing import Optional

from keywire.dependencies import describe_dependencies
from keywire.errors import CyclicDependencyError, MissingDependencyError
from keywire.keys import NormalizedKey, normalize_key
from keywire.registry import Registry

__all__ = ["GraphValidator", "validate_registry"]


class GraphValidator:
    """Depth-first check that every key in a registry is resolvable.

    Keys proven complete and acyclic are remembered across the whole walk, so
    each node's subtree is explored at most once. Keys on the current path are
    tracked separately to detect cycles.
    """

    def __init__(self, registry: Registry):
        self._registry = registry
        self._resolved: dict[NormalizedKey, None] = {}

    def validate(self) -> list[NormalizedKey]:
        """Validate every registered key.

        Returns:
            All registered keys, ordered so that each key appears after
            everything it depends on.

        Raises:
            MissingDependencyError: If an edge points at an unregistered key.
            CyclicDependencyError: If an edge closes a cycle.
        """
        for key in self._registry:
            self._visit(key, set(), None)
        return list(self._resolved)

    def _visit(
        self, key: NormalizedKey, resolving: set[NormalizedKey], parent: Optional[NormalizedKey]
    ) -> None:
        if key in self._resolved:
            return

        if key in resolving:
            raise CyclicDependencyError(key)

        registration = self._registry.get(key)
        if registration is None:
            raise MissingDependencyError(key, parent)

        resolving.add(key)
        dependencies = describe_dependencies(registration, self._registry.type_names)
        for dependency_key in dependencies.values():
            self._visit(normalize_key(dependency_key), resolving, key)

        resolving.discard(key)
        self._resolved[key] = None


def validate_registry(registry: Registry) -> list[NormalizedKey]:
    """Validate ``registry`` with a fresh :class:`GraphValidator`."""
    return GraphValidator(registry).validate()
