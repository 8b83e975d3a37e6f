"""Serialization utilities for bucketgit."""

import json
import yaml
from typing import Any


class Serializer:
    """Handles serialization/deserialization of bucketgit records.

    Everything works on bytes so callers can write the result atomically.
    """

    @staticmethod
    def to_json(data: Any) -> bytes:
        """Encode data as indented JSON."""
        return json.dumps(data, indent=2, ensure_ascii=False).encode('utf-8')

    @staticmethod
    def from_json(raw: bytes) -> Any:
        """Decode JSON bytes."""
        return json.loads(raw.decode('utf-8'))

    @staticmethod
    def canonical_json(data: Any) -> bytes:
        """Encode data deterministically, for hashing."""
        return json.dumps(
            data, sort_keys=True, separators=(',', ':'), ensure_ascii=False
        ).encode('utf-8')

    @staticmethod
    def to_yaml(data: Any) -> bytes:
        """Encode data as YAML."""
        return yaml.safe_dump(
            data, default_flow_style=False, allow_unicode=True
        ).encode('utf-8')

    @staticmethod
    def from_yaml(raw: bytes) -> Any:
        """Decode YAML bytes."""
        return yaml.safe_load(raw.decode('utf-8')) or {}
