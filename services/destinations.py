"""
============================================================================
EWM Stock Lookup - Destinations & Transport
============================================================================

Seams between the stock gateway and the outside world:
- DestinationResolver: name -> Connection (or None when not configured)
- Connection: executes one HTTP request against the resolved system

The default resolver reads destinations from the "destinations" environment
variable, the JSON list format used for local CAP development:

    destinations='[{"name": "EWM_HMF", "url": "https://ewm.example.com",
                    "username": "...", "password": "..."}]'

A destination may carry basic credentials (username/password) or a bearer
token. Connections execute through httpx.AsyncClient.

============================================================================
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DESTINATIONS_ENV_VAR = "destinations"

DEFAULT_TIMEOUT_SECONDS = 30.0


# =============================================================================
# Transport Types
# =============================================================================

@dataclass
class TransportResponse:
    """
    Result of one upstream HTTP call.

    data is the decoded JSON body, or the raw text when the body is not JSON.
    """
    status: int
    data: Any = None


class UpstreamHTTPError(Exception):
    """
    Raised by transports that signal non-2xx responses by exception.
    """

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"Upstream HTTP {status}: {message}")


class Connection(ABC):
    """
    Resolved connection to a remote system.
    """

    @abstractmethod
    async def execute(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        """
        Execute one request. url is relative to the destination base URL.

        Raises on network-level failures.
        """
        pass


class DestinationResolver(ABC):
    """
    Resolves a destination name to a Connection.
    """

    @abstractmethod
    def resolve(self, name: str) -> Optional[Connection]:
        """Return the connection, or None when the destination is unknown."""
        pass


# =============================================================================
# httpx Connection
# =============================================================================

@dataclass
class Destination:
    """
    Connection parameters of one named destination.
    """
    name: str
    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Destination":
        """
        Raises:
            ValueError: If "headers" is present but not a JSON object
        """
        headers = data.get("headers") or {}
        if not isinstance(headers, dict):
            raise ValueError(f"headers must be a JSON object, got {type(headers).__name__}")

        return cls(
            name=str(data["name"]),
            url=str(data["url"]),
            username=data.get("username") or data.get("user"),
            password=data.get("password"),
            token=data.get("token"),
            headers={str(k): str(v) for k, v in headers.items()},
        )


class HttpxConnection(Connection):
    """
    Connection executing requests through httpx.AsyncClient.

    A new client is opened per request; no pooled state is shared across
    requests.
    """

    def __init__(
        self,
        destination: Destination,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.destination = destination
        self.timeout = timeout
        self._transport = transport

    def _auth(self) -> Optional[httpx.Auth]:
        if self.destination.username:
            return httpx.BasicAuth(self.destination.username, self.destination.password or "")
        return None

    def _headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = dict(self.destination.headers)
        if self.destination.token and not self.destination.username:
            merged["Authorization"] = f"Bearer {self.destination.token}"
        merged.update(headers or {})
        return merged

    async def execute(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        full_url = self.destination.url.rstrip("/") + url

        async with httpx.AsyncClient(
            timeout=self.timeout,
            auth=self._auth(),
            transport=self._transport,
        ) as client:
            response = await client.request(method, full_url, headers=self._headers(headers))

        try:
            data = response.json()
        except ValueError:
            data = response.text

        logger.debug(
            "Upstream response | destination=%s | status=%d",
            self.destination.name,
            response.status_code
        )
        return TransportResponse(status=response.status_code, data=data)


# =============================================================================
# Resolvers
# =============================================================================

class StaticDestinationResolver(DestinationResolver):
    """
    Resolver over a fixed name -> Connection mapping.
    """

    def __init__(self, connections: Optional[Dict[str, Connection]] = None):
        self._connections = dict(connections or {})

    def resolve(self, name: str) -> Optional[Connection]:
        return self._connections.get(name)


class EnvironmentDestinationResolver(DestinationResolver):
    """
    Resolver reading the "destinations" environment variable on every call.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        env_var: str = DESTINATIONS_ENV_VAR
    ):
        self.timeout = timeout
        self.env_var = env_var

    def _load(self) -> List[Dict[str, Any]]:
        raw = os.environ.get(self.env_var, "")
        if not raw.strip():
            return []

        try:
            entries = json.loads(raw)
        except ValueError as e:
            logger.error(f"[DEST-001] Invalid JSON in {self.env_var} | error={e}")
            return []

        if not isinstance(entries, list):
            logger.error(f"[DEST-001] {self.env_var} must be a JSON list")
            return []

        return [e for e in entries if isinstance(e, dict)]

    def resolve(self, name: str) -> Optional[Connection]:
        for entry in self._load():
            if entry.get("name") != name:
                continue
            if not entry.get("url"):
                logger.error(f"[DEST-002] Destination has no url | name={name}")
                return None
            try:
                destination = Destination.from_dict(entry)
            except ValueError as e:
                logger.error(f"[DEST-004] Invalid destination | name={name} | error={e}")
                return None
            return HttpxConnection(destination, timeout=self.timeout)

        logger.warning(f"[DEST-003] Destination not found | name={name}")
        return None
