"""Blocking HTTP transport for the management API.

:class:`SyncClient` wraps :class:`httpx.Client` for
:class:`~botctl.client.management.ManagementApi`. A request is sent with
``Authorization: Bearer <token>`` when a ``token_source`` is configured. It
is retried on 5xx responses and network failures, waiting 1 s, 2 s, 4 s, ...
between attempts. An error status is raised as the matching
:class:`~botctl.exceptions.BotctlError` subclass.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from botctl.config import resolve_credential
from botctl.exceptions import (
    AuthError,
    BotctlError,
    ConfigError,
    ConnectionError_,
    InvalidUsageError,
    NotFoundError,
    ServerError,
)
from botctl.models import GlobalConfig
from botctl.output import debug

_STATUS_ERRORS: dict[int, type[BotctlError]] = {
    400: InvalidUsageError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: InvalidUsageError,
    422: InvalidUsageError,
}

_RETRYABLE = (httpx.TimeoutException, httpx.NetworkError)


class SyncClient:
    """HTTP client bound to the configured management API.

    Use it as a context manager; the connection pool lives for the ``with``
    block::

        with SyncClient(config) as client:
            response = client.request("GET", f"/bots/{bot_id}/deployments")

    Args:
        config: Supplies ``base_url``, ``token_source`` and the ``request``
            settings (timeout, SSL verification, retries).
        transport: Replaces the network transport, e.g. an
            :class:`httpx.MockTransport` in tests.

    Raises:
        ConfigError: If no base URL is configured.
    """

    def __init__(
        self,
        config: GlobalConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not config.base_url:
            raise ConfigError(
                "No management API base URL configured. "
                "Set BOTCTL_BASE_URL or run 'botctl config-set base_url <url>'."
            )
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> SyncClient:
        headers = {"Accept": "application/json"}
        if self._config.token_source:
            headers["Authorization"] = f"Bearer {resolve_credential(self._config.token_source)}"

        settings = self._config.request
        self._client = httpx.Client(
            base_url=self._config.base_url or "",
            headers=headers,
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def request(
        self,
        method: str,
        path: str,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a request and return the successful response.

        Raises:
            AuthError: 401 or 403.
            NotFoundError: 404.
            InvalidUsageError: 400, 409 or 422.
            ServerError: Any other error status, 5xx after the last retry.
            ConnectionError_: The server could not be reached on any attempt.
        """
        debug(f"{method.upper()} {path}")
        response = self._send(method, path, json_body)
        _raise_for_status(response)
        return response

    def _send(
        self,
        method: str,
        path: str,
        json_body: Any,
    ) -> httpx.Response:
        assert self._client is not None, "SyncClient used outside its 'with' block"

        retries = self._config.request.max_retries
        attempt = 0
        while True:
            try:
                response = self._client.request(method, path, json=json_body)
            except _RETRYABLE as exc:
                if attempt >= retries:
                    raise ConnectionError_(
                        f"Connection failed after {attempt + 1} attempts: {exc}"
                    ) from exc
                reason = f"connection error ({exc})"
            else:
                if response.status_code < 500 or attempt >= retries:
                    return response
                reason = f"HTTP {response.status_code}"

            delay = 2**attempt
            attempt += 1
            debug(f"{method.upper()} {path}: {reason}, retry {attempt}/{retries} in {delay}s")
            time.sleep(delay)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("detail") or "")
    return str(body)


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    message = _error_message(response)
    text = f"HTTP {status}: {message}" if message else f"HTTP {status}"
    raise _STATUS_ERRORS.get(status, ServerError)(text)
