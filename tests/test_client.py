"""Tests for RemoteClient using pytest-httpx."""

import base64
import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from storyshim.client import RemoteClient, RemoteResponse, basic_auth_header
from storyshim.errors import MappingError, RemoteError, TransportError
from storyshim.models import ConnectionConfig
from storyshim.validation import validate_config

MYSELF_URL = "https://acme.atlassian.net/rest/api/3/myself"


def test_basic_auth_header(connection_config: ConnectionConfig) -> None:
    header = basic_auth_header(connection_config)
    assert header.startswith("Basic ")
    assert base64.b64decode(header.removeprefix("Basic ")).decode() == "qa@acme.io:atl_token_123"


class TestRequest:
    def test_get_sends_auth_and_accept(self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=MYSELF_URL, method="GET", json={"accountId": "abc"})
        response = RemoteClient().request(connection_config, "/rest/api/3/myself")

        assert response.ok
        assert response.payload() == {"accountId": "abc"}
        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == basic_auth_header(connection_config)
        assert request.headers["Accept"] == "application/json"
        assert "Content-Type" not in request.headers
        assert request.content == b""

    def test_post_sends_json_body(self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock) -> None:
        url = "https://acme.atlassian.net/rest/api/3/search/jql"
        httpx_mock.add_response(url=url, method="POST", json={"issues": []})
        RemoteClient().request(connection_config, "/rest/api/3/search/jql", "POST", {"jql": "x"})

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"jql": "x"}

    def test_trailing_slash_base_url_gives_single_slash(self, raw_config: dict, httpx_mock: HTTPXMock) -> None:
        config = validate_config({**raw_config, "baseUrl": "https://acme.atlassian.net//"})
        httpx_mock.add_response(url=MYSELF_URL, json={})
        RemoteClient().request(config, "/rest/api/3/myself")

        request = httpx_mock.get_request()
        assert request is not None
        assert str(request.url) == MYSELF_URL

    def test_non_2xx_is_returned_not_raised(self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=MYSELF_URL, status_code=401, text="Unauthorized; scope does not match")
        response = RemoteClient().request(connection_config, "/rest/api/3/myself")

        assert not response.ok
        assert response.status_code == 401
        assert response.reason == "Unauthorized"
        assert response.text == "Unauthorized; scope does not match"

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("Connection refused"),
            httpx.ReadTimeout("timed out"),
            httpx.ConnectTimeout("timed out"),
            httpx.TooManyRedirects("Exceeded maximum allowed redirects"),
        ],
    )
    def test_network_failure_raises_transport_error(
        self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock, exc: Exception
    ) -> None:
        httpx_mock.add_exception(exc)
        with pytest.raises(TransportError, match="Could not reach Jira"):
            RemoteClient().request(connection_config, "/rest/api/3/myself")

    def test_undecodable_body_raises_mapping_error(
        self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.DecodingError("bad gzip"))
        with pytest.raises(MappingError, match="could not be decoded"):
            RemoteClient().request(connection_config, "/rest/api/3/myself")

    def test_single_attempt_only(self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=MYSELF_URL, status_code=503, text="busy")
        RemoteClient().request(connection_config, "/rest/api/3/myself")
        assert len(httpx_mock.get_requests()) == 1

    def test_uses_injected_client(self, connection_config: ConnectionConfig, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=MYSELF_URL, json={"accountId": "abc"})
        with httpx.Client() as http:
            response = RemoteClient(http=http).request(connection_config, "/rest/api/3/myself")
        assert response.payload() == {"accountId": "abc"}


class TestRemoteResponse:
    def test_raise_for_remote_error(self) -> None:
        response = RemoteResponse(status_code=403, reason="Forbidden", text='{"errorMessages":["nope"]}')
        with pytest.raises(RemoteError) as exc_info:
            response.raise_for_remote_error()
        assert exc_info.value.status_code == 403
        assert exc_info.value.reason == "Forbidden"
        assert exc_info.value.body == '{"errorMessages":["nope"]}'

    def test_ok_does_not_raise(self) -> None:
        RemoteResponse(status_code=204, reason="No Content", text="").raise_for_remote_error()

    def test_non_json_payload_is_mapping_error(self) -> None:
        response = RemoteResponse(status_code=200, reason="OK", text="<html>login</html>")
        with pytest.raises(MappingError, match="non-JSON"):
            response.payload()
