"""Shared test fixtures."""

import pytest

from storyshim.events import OperationEvent
from storyshim.models import ConnectionConfig, GenerateResponse, TestCase

BASE_URL = "https://acme.atlassian.net"
MYSELF_URL = f"{BASE_URL}/rest/api/3/myself"
SEARCH_URL = f"{BASE_URL}/rest/api/3/search/jql"

ADF_DESCRIPTION = {
    "type": "doc",
    "version": 1,
    "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Users can reset their password."}]}],
}


def issue(key: str, summary: str, description: object = "Plain description", **extra_fields: object) -> dict:
    return {
        "id": key.split("-")[-1],
        "key": key,
        "fields": {"summary": summary, "description": description, **extra_fields},
    }


class ListSink:
    def __init__(self) -> None:
        self.events: list[OperationEvent] = []

    def emit(self, event: OperationEvent) -> None:
        self.events.append(event)


@pytest.fixture
def raw_config() -> dict:
    return {"baseUrl": BASE_URL, "email": "qa@acme.io", "apiKey": "atl_token_123"}


@pytest.fixture
def connection_config(raw_config: dict) -> ConnectionConfig:
    return ConnectionConfig.model_validate(raw_config)


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def generate_response() -> GenerateResponse:
    return GenerateResponse(
        cases=[
            TestCase(
                id="TC-001",
                title='Reset with "valid" email',
                steps=["Open login page", "Click Forgot password", "Submit email"],
                test_data="qa@acme.io",
                expected_result="Reset email is sent",
                category="positive",
            ),
            TestCase(
                id="TC-002",
                title="Reset with unknown email",
                steps=["Submit unknown@acme.io"],
                expected_result="Generic confirmation, no email sent",
                category="negative",
            ),
        ],
        model="gpt-4o-mini",
        prompt_tokens=812,
        completion_tokens=344,
    )
