"""
Consul Store

Key/value access through the consul KV HTTP API.
"""

import base64
from typing import Dict, Optional
from urllib.parse import quote

from ..core.exceptions import ClientError
from .base import HTTPStore


class ConsulStore(HTTPStore):
    """consul backend"""

    backend = "consul"

    @staticmethod
    def _path(key: str) -> str:
        return f"/v1/kv/{quote(key)}"

    def get(self, key: str) -> Optional[bytes]:
        response = self._request("GET", self._path(key))
        if response.status_code == 404:
            return None
        self._check(response)
        entries = self._json(response) or []
        if not entries:
            return None
        value = entries[0].get("Value")
        return base64.b64decode(value) if value else b""

    def put(self, key: str, value: bytes) -> None:
        response = self._request("PUT", self._path(key), data=value)
        self._check(response)
        if self._json(response) is not True:
            raise ClientError(f"consul refused to write key {key}")

    def list(self, prefix: str) -> Dict[str, bytes]:
        response = self._request("GET", self._path(prefix), params={"recurse": "true"})
        if response.status_code == 404:
            return {}
        self._check(response)
        return {
            entry["Key"]: base64.b64decode(entry["Value"]) if entry.get("Value") else b""
            for entry in self._json(response) or []
        }
