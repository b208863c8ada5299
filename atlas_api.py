#!/usr/bin/env python3
"""MongoDB Atlas API transport, error payloads and call results.

This module holds everything the resource clients in
``atlas_containers.py`` share: the authenticated HTTP transport, the
decoded error payload returned by Atlas on failure, and the tagged
result every resource method returns.

    AtlasAPI        -- Transport using HTTP Digest Auth with a
                       programmatic API key (public + private key pair).

    AtlasOrgAPI     -- Transport using OAuth2 Client Credentials
                       (Service Account Bearer token).

    APIError        -- Decoded Atlas error body (``detail``, ``error``,
                       ``errorCode``, ``reason``, ``parameters``).

    Success/Failure -- Tagged result of a single API call.

Architecture
------------
::

    ContainerService / PrivateIPModeService
        |
        +-- execute(api, method, path, decode) --> Success | Failure
                |
                +-- api.request(...)   (AtlasAPI or AtlasOrgAPI)
                |       |
                |       +-- requests.Session  (shared, never mutated per call)
                |
                +-- relevant_error(transport_error, api_error)

All paths handed to ``request`` are relative to ``{base_url}/groups/``,
so a resource client only ever formats ``{gid}/...`` fragments.

Usage
-----
::

    from atlas_api import AtlasAPI
    from atlas_containers import ContainerService

    api = AtlasAPI(public_key, private_key)
    result = ContainerService(api).list(group_id, "AWS")
    if result.ok:
        for container in result.value:
            print(container.id, container.atlas_cidr_block)
    else:
        print(result.error)

Environment Variables
---------------------
This module does not load .env itself -- callers are responsible for
calling ``load_dotenv()`` before constructing API instances.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import requests
from requests.auth import HTTPDigestAuth

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# privateIpMode is only served by the v1.0 API.
BASE = "https://cloud.mongodb.com/api/atlas/v1.0"
TOKEN_URL = "https://cloud.mongodb.com/api/oauth/token"
JSON_ACCEPT = "application/json"


# ============================================================================
# Error payloads and results
# ============================================================================

@dataclass
class APIError:
    """Error body returned by Atlas for a non-2xx response.

    Attributes:
        detail: Human readable description of the failure.
        error: HTTP status code echoed by Atlas.
        error_code: Stable Atlas error code (e.g. ``RESOURCE_NOT_FOUND``).
        reason: HTTP reason phrase.
        parameters: Values substituted into ``detail``.
    """

    detail: str = ""
    error: int = 0
    error_code: str = ""
    reason: str = ""
    parameters: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "APIError":
        """Build an APIError from a decoded JSON body, ignoring unknown keys."""
        return cls(
            detail=data.get("detail") or "",
            error=data.get("error") or 0,
            error_code=data.get("errorCode") or "",
            reason=data.get("reason") or "",
            parameters=list(data.get("parameters") or []),
        )

    @classmethod
    def from_response(cls, resp: requests.Response) -> "APIError":
        """Decode the error body of a failed response.

        Atlas normally answers errors with a JSON document.  When the body is
        empty or not JSON the status line is used instead, so a non-2xx
        response never decodes to an empty payload.

        Args:
            resp: A response whose status is outside 2xx.

        Returns:
            Populated APIError.
        """
        try:
            data = resp.json()
        except ValueError:
            data = None
        payload = cls.from_dict(data) if isinstance(data, dict) else cls()
        if not payload.error:
            payload.error = resp.status_code
        if not payload.reason:
            payload.reason = resp.reason or ""
        return payload

    def is_empty(self) -> bool:
        """True for the zero value (nothing decoded)."""
        return self == APIError()

    def __str__(self) -> str:
        text = f"{self.error} {self.error_code or self.reason}"
        if self.detail:
            text += f": {self.detail}"
        return text


class AtlasAPIError(Exception):
    """API-level failure: Atlas answered, and the answer was an error.

    Attributes:
        payload: The decoded APIError.
        response: The requests.Response it was decoded from (may be None).
    """

    def __init__(self, payload: APIError, response: requests.Response | None = None):
        super().__init__(str(payload))
        self.payload = payload
        self.response = response

    @property
    def status_code(self) -> int:
        return self.payload.error

    @property
    def error_code(self) -> str:
        return self.payload.error_code


def relevant_error(
    transport_error: Exception | None,
    api_error: APIError,
    response: requests.Response | None = None,
) -> Exception | None:
    """Pick the error to report for one call.

    The transport error wins when there is one.  Otherwise an error is
    built from the payload only when the payload is non-empty; a zero
    payload (the normal case on success) means no error.

    Args:
        transport_error: Connection/timeout/decoding failure, or None.
        api_error: Payload decoded from the response (zero value on 2xx).
        response: Response to attach to an AtlasAPIError.

    Returns:
        The exception to report, or None.
    """
    if transport_error is not None:
        return transport_error
    if not api_error.is_empty():
        return AtlasAPIError(api_error, response)
    return None


@dataclass
class Success:
    """Result of a call that succeeded.  ``value`` is the decoded body."""

    value: Any = None
    response: requests.Response | None = None

    ok = True
    error = None

    def unwrap(self) -> Any:
        return self.value


@dataclass
class Failure:
    """Result of a call that failed.

    ``response`` is None for transport failures (nothing was received)
    and set for API-level failures.
    """

    error: Exception
    response: requests.Response | None = None

    ok = False
    value = None

    def unwrap(self) -> Any:
        """Raise the stored error."""
        raise self.error


Result = Success | Failure


# ============================================================================
# Transports
# ============================================================================

class _BaseAPI:
    """Shared request plumbing for both auth strategies.

    Subclasses set up ``self._session`` and may extend ``_headers``.
    Nothing here is mutated after ``__init__``, so a single instance can
    back any number of resource clients.
    """

    def __init__(self, base_url: str = BASE, timeout: float | None = None):
        self._session = requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def groups_url(self, path: str) -> str:
        """Build a URL under ``{base_url}/groups/``.

        Args:
            path: Path relative to the groups root, e.g. "{gid}/containers".

        Returns:
            Full URL string.
        """
        return f"{self.base_url}/groups/{path.lstrip('/')}"

    def _headers(self, with_body: bool) -> dict:
        headers = {"Accept": JSON_ACCEPT}
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def request(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        params: dict | None = None,
    ) -> requests.Response:
        """Send one request to a groups-scoped endpoint.

        Args:
            method: HTTP verb.
            path: Path relative to ``{base_url}/groups/``.
            body: JSON-serializable request body, or None.
            params: Query string parameters, or None.

        Returns:
            requests.Response object.

        Raises:
            requests.RequestException: On connection failure or timeout.
        """
        url = self.groups_url(path)
        log.debug("%s %s params=%s", method, url, params)
        return self._session.request(
            method,
            url,
            headers=self._headers(body is not None),
            json=body,
            params=params,
            timeout=self.timeout,
        )


class AtlasAPI(_BaseAPI):
    """Atlas transport using HTTP Digest authentication.

    Example::

        api = AtlasAPI(public_key, private_key)
        resp = api.request("GET", f"{group_id}/containers/{container_id}")
    """

    def __init__(
        self,
        public_key: str,
        private_key: str,
        base_url: str = BASE,
        timeout: float | None = None,
    ):
        """Initialize with Atlas programmatic API key credentials.

        Args:
            public_key: Atlas API public key.
            private_key: Atlas API private key.
            base_url: API root, without the trailing ``/groups``.
            timeout: Per-request timeout in seconds passed to requests.
        """
        super().__init__(base_url, timeout)
        self._session.auth = HTTPDigestAuth(public_key, private_key)


class AtlasOrgAPI(_BaseAPI):
    """Atlas transport using Service Account OAuth2.

    Uses the Client Credentials grant to obtain a Bearer token, which is
    refreshed when it approaches expiry (60-second buffer).
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = BASE,
        token_url: str = TOKEN_URL,
        timeout: float | None = None,
    ):
        """Initialize with OAuth2 service account credentials.

        Args:
            client_id: Atlas service account client ID.
            client_secret: Atlas service account client secret.
            base_url: API root, without the trailing ``/groups``.
            token_url: OAuth2 token endpoint.
            timeout: Per-request timeout in seconds passed to requests.
        """
        super().__init__(base_url, timeout)
        self.token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._token: str | None = None
        self._token_expiry: float = 0  # Unix timestamp when token expires
        self._token_lock = threading.Lock()

    def _ensure_token(self) -> str:
        """Obtain or refresh the OAuth2 Bearer token.

        Returns:
            Valid Bearer token string.

        Raises:
            requests.HTTPError: If the token endpoint returns an error or a
                body without an access_token.
        """
        with self._token_lock:
            if self._token and time.time() < self._token_expiry - 60:
                return self._token

            log.debug("Requesting service account token from %s", self.token_url)
            resp = requests.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            try:
                data = resp.json()
            except ValueError as exc:
                raise requests.HTTPError(
                    f"token response is not JSON: {exc}", response=resp) from exc
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token or not isinstance(token, str):
                raise requests.HTTPError(
                    "token response has no access_token", response=resp)
            self._token = token
            # Default to 1-hour expiry if the response doesn't include expires_in
            expires_in = data.get("expires_in", 3600)
            if not isinstance(expires_in, (int, float)):
                expires_in = 3600
            self._token_expiry = time.time() + expires_in
            return self._token

    def _headers(self, with_body: bool) -> dict:
        headers = super()._headers(with_body)
        headers["Authorization"] = f"Bearer {self._ensure_token()}"
        return headers


# ============================================================================
# Request execution
# ============================================================================

def execute(
    api: _BaseAPI,
    method: str,
    path: str,
    decode: Callable[[dict], Any] | None = None,
    body: dict | None = None,
    params: dict | None = None,
) -> Result:
    """Perform one call and fold its outcome into a Success or Failure.

    Args:
        api: Transport to send the request through.
        method: HTTP verb.
        path: Path relative to the groups root.
        decode: Turns a 2xx JSON body into the success value.  An empty
            body decodes as ``{}``.  None means the body is ignored.
            ValueError or TypeError from it is reported as a Failure.
        body: JSON request body.
        params: Query string parameters.

    Returns:
        Success(value, response) or Failure(error, response).
    """
    try:
        resp = api.request(method, path, body=body, params=params)
    except requests.RequestException as exc:
        log.error("%s %s failed: %s", method, path, exc)
        return Failure(exc)

    transport_error: Exception | None = None
    api_error = APIError()
    value = None
    if 200 <= resp.status_code < 300:
        if decode is not None:
            try:
                value = decode(resp.json() if resp.content else {})
            except (ValueError, TypeError) as exc:
                transport_error = exc
    else:
        api_error = APIError.from_response(resp)

    error = relevant_error(transport_error, api_error, resp)
    if error is not None:
        log.warning("%s %s: %s", method, path, error)
        return Failure(error, resp)
    return Success(value, resp)
