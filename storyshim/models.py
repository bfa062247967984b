"""Shared pydantic models: the contract between the Jira provider, the service layer and main.py."""

from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, EmailStr, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel

from storyshim.errors import ValidationError

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_FIELDS = ("summary", "description")
STORY_JQL = "issuetype = Story ORDER BY created DESC"


class ConnectionConfig(BaseModel):
    """Jira connection parameters, validated and normalized. Built per call, never stored."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    base_url: str = Field(alias="baseUrl")
    email: EmailStr
    api_key: SecretStr = Field(alias="apiKey")

    @field_validator("base_url", "email", "api_key", mode="before")
    @classmethod
    def _strip_whitespace(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, SecretStr):
            return SecretStr(value.get_secret_value().strip())
        return value

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid URL ({exc})") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http(s) URL")
        if "?" in value or "#" in value:
            raise ValueError("must not contain a query or fragment")
        # {base_url}{path} must have exactly one slash between base and path
        return value.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value


class IssueQuery(BaseModel):
    """One page of a Story search against /rest/api/3/search/jql."""

    model_config = ConfigDict(frozen=True)

    project_key: str | None = None
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    fields: tuple[str, ...] = DEFAULT_FIELDS
    next_page_token: str | None = None

    @field_validator("project_key")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @property
    def jql(self) -> str:
        if not self.project_key:
            return STORY_JQL
        escaped = self.project_key.replace("\\", "\\\\").replace('"', '\\"')
        return f'project = "{escaped}" AND {STORY_JQL}'

    def body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "jql": self.jql,
            "maxResults": self.page_size,
            "fields": list(self.fields),
        }
        if self.next_page_token:
            body["nextPageToken"] = self.next_page_token
        return body

    def next_page(self, token: str) -> "IssueQuery":
        return self.model_copy(update={"next_page_token": token})


class NormalizedIssueRecord(BaseModel):
    """A Jira issue flattened to the shape the test-case generator consumes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str  # Jira issue key, e.g. PROJ-123
    title: str
    description: str
    # None means no acceptance-criteria field is configured for this Jira instance
    acceptance_criteria: str | None = Field(default=None, alias="acceptanceCriteria")


class ConnectResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["connected"] = "connected"
    identity: dict[str, Any]


class StoriesResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: list[NormalizedIssueRecord]


class ErrorResult(BaseModel):
    """Caller-facing failure with an HTTP-status-like code."""

    model_config = ConfigDict(frozen=True)

    error: str
    kind: Literal["validation", "transport", "remote", "mapping"]
    status_code: int
    details: str | None = None


# ---------------------------------------------------------------------------
# Test-case generation payloads
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class GenerateRequest(_CamelModel):
    story_title: str = Field(min_length=1)
    acceptance_criteria: str = Field(min_length=1)
    description: str | None = None
    additional_info: str | None = None

    @classmethod
    def from_record(cls, record: NormalizedIssueRecord, additional_info: str | None = None) -> "GenerateRequest":
        if not record.acceptance_criteria:
            raise ValidationError(
                f"{record.id}: acceptance criteria unavailable. Set acceptance_criteria_field for this Jira instance."
            )
        return cls(
            story_title=record.title,
            acceptance_criteria=record.acceptance_criteria,
            description=record.description or None,
            additional_info=additional_info,
        )


class TestCase(_CamelModel):
    __test__ = False  # not a pytest class

    id: str
    title: str
    steps: list[str]
    test_data: str | None = None
    expected_result: str
    category: str


class GenerateResponse(_CamelModel):
    cases: list[TestCase]
    model: str | None = None
    prompt_tokens: int
    completion_tokens: int
