"""
etcd Store

Key/value access through the etcd v3 JSON gateway. Keys and values travel
base64-encoded.
"""

import base64
from typing import Dict, Optional

from .base import HTTPStore


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _decode(data: str) -> bytes:
    return base64.b64decode(data) if data else b""


def prefix_range_end(prefix: bytes) -> bytes:
    """
    Compute the exclusive range end covering every key with the given prefix.

    Args:
        prefix: Key prefix

    Returns:
        bytes: The prefix with its last incrementable byte bumped
    """
    end = bytearray(prefix)
    for i in range(len(end) - 1, -1, -1):
        if end[i] < 0xff:
            end[i] += 1
            return bytes(end[:i + 1])
    # All 0xff: range to the end of the keyspace
    return b"\x00"


class EtcdStore(HTTPStore):
    """etcd v3 backend"""

    backend = "etcd"

    def get(self, key: str) -> Optional[bytes]:
        response = self._request("POST", "/v3/kv/range", json={"key": _encode(key.encode())})
        self._check(response)
        kvs = self._json(response).get("kvs") or []
        if not kvs:
            return None
        return _decode(kvs[0].get("value", ""))

    def put(self, key: str, value: bytes) -> None:
        response = self._request("POST", "/v3/kv/put", json={
            "key": _encode(key.encode()),
            "value": _encode(value),
        })
        self._check(response)

    def list(self, prefix: str) -> Dict[str, bytes]:
        raw_prefix = prefix.encode()
        response = self._request("POST", "/v3/kv/range", json={
            "key": _encode(raw_prefix),
            "range_end": _encode(prefix_range_end(raw_prefix)),
        })
        self._check(response)
        return {
            _decode(kv["key"]).decode(): _decode(kv.get("value", ""))
            for kv in self._json(response).get("kvs") or []
        }
