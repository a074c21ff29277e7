"""Service keys and their normalisation.

Services may be registered and requested by string, by :class:`Token`, or by type.
All three are reduced to a single string form by :func:`normalize_key`, and that
string is what registries, caches and the dependency graph are keyed by.

Because types normalise to their ``__name__``, a type and a string spelling the
same name refer to the same service::

    >>> normalize_key(Database) == normalize_key("Database")
    True
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Union, get_origin
from uuid import UUID

__all__ = ["ServiceKey", "NormalizedKey", "Token", "normalize_key"]


@dataclass(frozen=True)
class Token:
    """A symbolic key, unique per instance regardless of its name.

    Attributes:
        name: Descriptive name, used only for display.
        id: Random identifier distinguishing tokens that share a name.

    Example:
        >>> LOGGER = Token("Logger")
        >>> builder.singleton(LOGGER, make_logger)
    """

    name: str
    id: UUID = field(default_factory=uuid.uuid4)

    def __str__(self) -> str:
        return f"Token({self.name}, {self.id})"


ServiceKey = Union[str, Token, type]
"""Type alias for anything a service can be registered or resolved under."""

NormalizedKey = str
"""The canonical string form of a :data:`ServiceKey`."""


def normalize_key(key: Any) -> NormalizedKey:
    """Reduce a service key to its canonical string form.

    Args:
        key: A string, :class:`Token`, type or other key object.

    Returns:
        The string itself, the token's unique rendering, the type's
        ``__name__``, or ``str(key)`` when no name is available.
    """
    if isinstance(key, str):
        return key
    if isinstance(key, Token):
        return str(key)
    if get_origin(key) is not None:
        return str(key)
    name = getattr(key, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return str(key)
