"""FrontCache Serializer - Encoding of Persisted Records.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import gzip
import json
import logging
import pickle
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import msgpack

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class Serializer(ABC):
    """Turns persisted records into bytes and back.

    Records are plain data: cache snapshots, namespace indexes, stored
    responses and offline actions. Every format can be gzipped; ``loads``
    recognises compressed payloads by their magic bytes, so a store
    written with compression off stays readable after turning it on.
    """

    format_name = ""

    @abstractmethod
    def serialize(self, value: Any) -> bytes:
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        pass

    def dumps(self, value: Any, compress: bool = False, threshold: int = 1024) -> bytes:
        """Encode a record.

        Args:
            value: Record to encode
            compress: Gzip payloads of at least ``threshold`` bytes
            threshold: Minimum payload size worth compressing

        Returns:
            Encoded bytes
        """
        data = self.serialize(value)
        if not compress or len(data) < threshold:
            return data

        packed = gzip.compress(data)
        if len(packed) >= len(data):
            return data
        logger.debug(f"Compressed {self.format_name} record {len(data)} -> {len(packed)} bytes")
        return packed

    def loads(self, data: bytes) -> Any:
        """Decode bytes written by dumps."""
        if data[:2] == GZIP_MAGIC:
            data = gzip.decompress(data)
        return self.deserialize(data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JSONSerializer(Serializer):
    """JSON serializer.

    Human-readable and the default for every adapter. Values JSON cannot
    represent are stored as their string form.
    """

    format_name = "json"

    def serialize(self, value: Any) -> bytes:
        return json.dumps(value, default=str).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class PickleSerializer(Serializer):
    """Pickle serializer.

    Keeps arbitrary Python values in cache snapshots.
    Not safe for stores other processes can write to.
    """

    format_name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def serialize(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def deserialize(self, data: bytes) -> Any:
        return pickle.loads(data)


class MsgPackSerializer(Serializer):
    """MessagePack serializer.

    Compact binary encoding for large snapshots in Redis.
    """

    format_name = "msgpack"

    def serialize(self, value: Any) -> bytes:
        return msgpack.packb(value, use_bin_type=True)

    def deserialize(self, data: bytes) -> Any:
        return msgpack.unpackb(data, raw=False)


class SerializerRegistry:
    """Serializers by format name, JSON by default."""

    def __init__(self, default: str = "json"):
        self._serializers: Dict[str, Serializer] = {}
        for serializer in (JSONSerializer(), PickleSerializer(), MsgPackSerializer()):
            self.register(serializer)
        self.default = default

    def register(self, serializer: Serializer) -> None:
        self._serializers[serializer.format_name] = serializer

    def get(self, format_name: Optional[str] = None) -> Serializer:
        """Look up a serializer.

        Args:
            format_name: Format name, or None for the default

        Returns:
            Serializer instance

        Raises:
            KeyError: If the format is unknown
        """
        name = format_name or self.default
        try:
            return self._serializers[name]
        except KeyError:
            raise KeyError(f"Unknown serializer format: {name}") from None

    def formats(self) -> List[str]:
        return list(self._serializers)


_registry = SerializerRegistry()


def get_serializer(format_name: Optional[str] = None) -> Serializer:
    """Get a serializer from the shared registry."""
    return _registry.get(format_name)


__all__ = [
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
    "GZIP_MAGIC",
]
