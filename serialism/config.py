"""
Configuration for the serialism codec.

CodecConfig controls how codec-safe values are written to bytes:

    >>> from serialism import Serialism, CodecConfig
    >>> serializer = Serialism(config=CodecConfig(protocol=4))

``extra_types`` lets a host admit additional immutable value types to the
codec. Instances of these types are handed to pickle untouched on both
sides, so they must pickle by value (their reduction may only reference the
class itself and other codec-safe values):

    >>> config = CodecConfig(extra_types=(ipaddress.IPv4Address,))
"""

from __future__ import annotations

import pickle

from pydantic import BaseModel, ConfigDict, Field


class CodecConfig(BaseModel):
    """
    Codec settings.

    Attributes:
        protocol: Pickle protocol used to encode buffers. Protocol 4 is the
            oldest one that writes sets and frozensets without referencing
            builtins by name.
        extra_types: Additional classes whose instances pass through the
            transforms unchanged and are accepted by the codec.
    """

    model_config = ConfigDict(frozen=True)

    protocol: int = Field(default=pickle.HIGHEST_PROTOCOL, ge=4, le=pickle.HIGHEST_PROTOCOL)
    extra_types: tuple[type, ...] = ()


DEFAULT_CONFIG = CodecConfig()


__all__ = ["CodecConfig", "DEFAULT_CONFIG"]
