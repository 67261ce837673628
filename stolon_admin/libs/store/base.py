"""
Store Session

HTTP plumbing shared by the etcd and consul backends: endpoint failover,
TLS client material and error translation.
"""

import logging
import os
from typing import List, Optional

import requests

from ..core.constants import ErrorMessages, StoreConstants
from ..core.exceptions import ClientError

logger = logging.getLogger(__name__)


class HTTPStore:
    """Base class for HTTP-speaking coordination stores"""

    backend = ""

    def __init__(self, endpoints: List[str], cert_file: str = "", key_file: str = "",
                 cacert_file: str = "", timeout: float = StoreConstants.REQUEST_TIMEOUT):
        """
        Initialize the store session

        Args:
            endpoints: Store endpoints, tried in order
            cert_file: Client TLS certificate (optional)
            key_file: Client TLS key (optional)
            cacert_file: CA bundle used to verify the store (optional)
            timeout: Per-request timeout in seconds

        Raises:
            ClientError: If no endpoint is given or TLS material is unusable
        """
        if not endpoints:
            raise ClientError(f"no {self.backend} endpoints configured")

        for kind, path in (("cert", cert_file), ("key", key_file), ("CA cert", cacert_file)):
            if path and not os.path.isfile(path):
                raise ClientError(ErrorMessages.TLS_FILE_NOT_FOUND.format(kind=kind, path=path))
        if key_file and not cert_file:
            raise ClientError("a TLS key was given without a TLS cert")

        self.tls = bool(cert_file or key_file or cacert_file)
        self.timeout = timeout
        self.session = requests.Session()
        if cert_file:
            self.session.cert = (cert_file, key_file) if key_file else cert_file
        if cacert_file:
            self.session.verify = cacert_file

        self.endpoints = [self._normalize_endpoint(endpoint) for endpoint in endpoints]

    def _normalize_endpoint(self, endpoint: str) -> str:
        endpoint = endpoint.strip().rstrip('/')
        if "://" in endpoint:
            return endpoint
        scheme = "https" if self.tls else "http"
        return f"{scheme}://{endpoint}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Send a request to the first endpoint that accepts a connection

        Args:
            method: HTTP method
            path: Path including any query string

        Returns:
            requests.Response: The response from the first reachable endpoint

        Raises:
            ClientError: If every endpoint fails to connect
        """
        last_error: Optional[Exception] = None
        for endpoint in self.endpoints:
            url = f"{endpoint}{path}"
            try:
                logger.debug(f"{method} {url}")
                return self.session.request(method, url, timeout=self.timeout, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.debug(f"{self.backend} endpoint {endpoint} failed: {e}")
                last_error = e
            except requests.RequestException as e:
                raise ClientError(f"{self.backend} request to {url} failed: {e}") from e

        raise ClientError(ErrorMessages.STORE_UNREACHABLE.format(
            backend=self.backend,
            endpoints=",".join(self.endpoints),
            error=last_error,
        )) from last_error

    def _check(self, response: requests.Response) -> None:
        if response.status_code >= 400:
            raise ClientError(
                f"{self.backend} request failed: {response.status_code} {response.text.strip()}"
            )

    def _json(self, response: requests.Response):
        try:
            return response.json()
        except ValueError as e:
            raise ClientError(f"invalid response from {self.backend}: {e}") from e

    def close(self) -> None:
        self.session.close()
