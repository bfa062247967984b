"""Authenticated HTTP transport for the Jira REST API."""

import base64
import json
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from storyshim.errors import MappingError, RemoteError, TransportError
from storyshim.models import ConnectionConfig

DEFAULT_TIMEOUT = 30.0


def basic_auth_header(config: ConnectionConfig) -> str:
    raw = f"{config.email}:{config.api_key.get_secret_value()}".encode()
    return "Basic " + base64.b64encode(raw).decode("ascii")


@dataclass(frozen=True)
class RemoteResponse:
    """Any HTTP answer from Jira. Non-2xx is a normal outcome here, not an exception."""

    status_code: int
    reason: str
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_remote_error(self) -> None:
        if not self.ok:
            raise RemoteError(self.status_code, self.reason, self.text)

    def payload(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise MappingError(f"Jira returned a non-JSON body (status {self.status_code})") from exc


class RemoteClient:
    """Issues one request per call. Never retries.

    Pass an ``httpx.Client`` to share a connection pool; closing it from another
    thread aborts requests in flight.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, http: httpx.Client | None = None) -> None:
        self._timeout = timeout
        self._http = http

    def request(
        self,
        config: ConnectionConfig,
        path: str,
        method: str = "GET",
        body: dict | None = None,
    ) -> RemoteResponse:
        url = f"{config.base_url}{path}"
        headers = {
            "Authorization": basic_auth_header(config),
            "Accept": "application/json",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("Jira request", method=method, url=url)
        send = self._http.request if self._http is not None else httpx.request
        try:
            response = send(method, url, headers=headers, json=body, timeout=self._timeout)
        except httpx.DecodingError as exc:
            raise MappingError(f"Jira sent a body that could not be decoded: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Could not reach Jira at {config.base_url}: {exc}") from exc

        return RemoteResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            text=response.text,
        )
