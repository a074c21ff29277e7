"""Exceptions raised while registering, validating and resolving services."""

from typing import Optional

__all__ = [
    "DependencyError",
    "DuplicateRegistrationError",
    "UnknownArgumentError",
    "AmbiguousConstantsError",
    "MissingDependencyError",
    "CyclicDependencyError",
    "UnknownOverrideTargetError",
    "UnknownDependencyError",
]


class DependencyError(Exception):
    """Raised when a service's dependency cannot be resolved or is misdeclared."""

    pass


class DuplicateRegistrationError(DependencyError):
    """Raised when a key is registered twice on the same builder."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Type {key} is already registered")


class UnknownArgumentError(DependencyError):
    """Raised when an explicit argument does not name a parameter of its factory."""

    def __init__(self, key: str, argument: str):
        self.key = key
        self.argument = argument
        super().__init__(f"No argument '{argument}' for factory for type {key}")


class AmbiguousConstantsError(DependencyError):
    """Raised when several explicit arguments are given and none is a dependency."""

    def __init__(self, key: str, arguments: list[str]):
        self.key = key
        self.arguments = arguments
        super().__init__(
            f"Multiple arguments {arguments} provided but none are dependencies "
            f"for type {key}. If providing multiple parameters, at least one "
            "should be a dependency."
        )


class MissingDependencyError(DependencyError):
    """Raised at build time when a dependency edge points at an unregistered key."""

    def __init__(self, key: str, parent: Optional[str] = None):
        self.key = key
        self.parent = parent
        needed_by = f" needed by {parent}" if parent else ""
        super().__init__(f"No dependency of type {key}{needed_by}")


class CyclicDependencyError(DependencyError):
    """Raised at build time when a dependency edge closes a cycle."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Cycle dependencies for type {key}")


class UnknownOverrideTargetError(DependencyError):
    """Raised when overriding a key that was never registered."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Cannot override {key} without any registration")


class UnknownDependencyError(DependencyError):
    """Raised when resolving a key that has no registration."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No dependency of type {key}")
