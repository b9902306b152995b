"""
The Serialism facade.

Serialism ties the pieces together:

    serialize(value)    = encode(entomb(value))
    deserialize(buffer) = revive(decode(buffer))

and owns the class registry both transforms consult. Every call uses a fresh
identity map; the registry (and the immutable codec configuration) is the
only state kept between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from serialism import codec
from serialism.config import DEFAULT_CONFIG, CodecConfig
from serialism.entomb import EntombContext
from serialism.registry import ClassRegistry
from serialism.revive import ReviveContext


logger = logging.getLogger(__name__)


class Serialism:
    """
    Serialize and deserialize value graphs, including registered classes.

    Example:
        >>> class Point:
        ...     def __init__(self, x, y):
        ...         self.x, self.y = x, y
        >>>
        >>> serializer = Serialism().register(Point)
        >>> buffer = serializer.serialize({"origin": Point(0, 0)})
        >>> serializer.deserialize(buffer)["origin"].x
        0

    Classes must be registered on both sides. A buffer that names a class
    the deserializing instance does not know raises UnregisteredClassError.
    Register everything before sharing an instance between threads.
    """

    def __init__(
        self,
        classes: Iterable[type] = (),
        config: CodecConfig | None = None,
    ):
        """
        Initialize the serializer.

        Args:
            classes: Classes to register immediately.
            config: Optional codec configuration.
        """
        self.registry = ClassRegistry(tuple(classes))
        self.config = config or DEFAULT_CONFIG

    @property
    def classes(self) -> tuple[type, ...]:
        """The registered classes, in registration order."""
        return self.registry.classes

    def register(self, *classes: type) -> Serialism:
        """
        Register classes for serialization and deserialization.

        Returns:
            This instance, for chaining.

        Raises:
            DuplicateClassError: If a different class with the same name is
                already registered.
        """
        self.registry.register(*classes)
        return self

    def serialize(self, value: Any) -> bytes:
        """
        Serialize a value to bytes.

        Raises:
            DataCloneError: If the value contains something that cannot be
                cloned (private symbols, functions, unsupported types).
            UnregisteredClassError: If the value contains an instance of an
                unregistered class.
        """
        entombed = EntombContext(self.registry, self.config).entomb(value)
        buffer = codec.encode(entombed, self.config)
        logger.debug("Serialized %s into %d bytes", type(value).__name__, len(buffer))
        return buffer

    def deserialize(self, buffer: bytes) -> Any:
        """
        Deserialize bytes produced by serialize().

        Raises:
            DecodeError: If the buffer is malformed or incompatible.
            UnregisteredClassError: If the buffer names a class that is not
                registered on this instance.
            UnknownDirectiveError: If the buffer carries a corrupt directive.
        """
        decoded = codec.decode(buffer, self.config)
        logger.debug("Decoded %d bytes into %s", len(buffer), type(decoded).__name__)
        return ReviveContext(self.registry).revive(decoded)

    def __repr__(self) -> str:
        return f"Serialism(classes=[{', '.join(self.registry)}])"


__all__ = ["Serialism"]
