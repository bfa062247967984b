"""Jira Cloud REST v3 provider."""

import json
from typing import Any

from loguru import logger

from storyshim.client import RemoteClient
from storyshim.errors import MappingError, ValidationError
from storyshim.models import (
    DEFAULT_FIELDS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ConnectResult,
    IssueQuery,
    NormalizedIssueRecord,
)
from storyshim.providers.base import TrackerProvider
from storyshim.settings import StoryshimSettings
from storyshim.validation import validate_config

MYSELF_PATH = "/rest/api/3/myself"
# /rest/api/3/search was removed from Jira Cloud; search/jql is its replacement
SEARCH_PATH = "/rest/api/3/search/jql"


def coerce_text(value: Any) -> str:
    """Plain strings pass through; ADF documents become compact JSON text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class JiraProvider(TrackerProvider):
    def __init__(
        self,
        config: Any,
        *,
        client: RemoteClient | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        all_pages: bool = False,
        max_results: int | None = None,
        acceptance_criteria_field: str | None = None,
    ) -> None:
        self._config = validate_config(config)
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"page_size: must be between 1 and {MAX_PAGE_SIZE}")
        if max_results is not None and max_results < 1:
            raise ValidationError("max_results: must be at least 1")
        self._client = client or RemoteClient()
        self._page_size = page_size
        self._all_pages = all_pages
        self._max_results = max_results
        self._ac_field = acceptance_criteria_field or None
        self._fields = DEFAULT_FIELDS + ((self._ac_field,) if self._ac_field else ())

    @classmethod
    def from_settings(
        cls,
        config: Any,
        settings: StoryshimSettings,
        client: RemoteClient | None = None,
    ) -> "JiraProvider":
        return cls(
            config,
            client=client or RemoteClient(timeout=settings.timeout),
            page_size=settings.page_size,
            all_pages=settings.all_pages,
            max_results=settings.max_results,
            acceptance_criteria_field=settings.acceptance_criteria_field,
        )

    def _record_from_issue(self, issue: Any) -> NormalizedIssueRecord:
        if not isinstance(issue, dict) or not isinstance(issue.get("key"), str):
            raise MappingError(f"Jira issue without a key: {issue!r:.200}")
        key = issue["key"]
        fields = issue.get("fields")
        if not isinstance(fields, dict):
            raise MappingError(f"Jira issue {key} has no fields object")
        summary = fields.get("summary")
        if not isinstance(summary, str):
            raise MappingError(f"Jira issue {key} has no summary")
        if "description" not in fields:
            raise MappingError(f"Jira issue {key} has no description field")

        acceptance_criteria = None
        if self._ac_field and fields.get(self._ac_field) is not None:
            acceptance_criteria = coerce_text(fields[self._ac_field])

        return NormalizedIssueRecord(
            id=key,
            title=summary,
            description=coerce_text(fields["description"]),
            acceptance_criteria=acceptance_criteria,
        )

    def _search(self, query: IssueQuery) -> dict:
        response = self._client.request(self._config, SEARCH_PATH, "POST", query.body())
        response.raise_for_remote_error()
        data = response.payload()
        if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
            raise MappingError("Jira search response has no issues list")
        return data

    def validate_credentials(self) -> ConnectResult:
        response = self._client.request(self._config, MYSELF_PATH)
        response.raise_for_remote_error()
        identity = response.payload()
        if not isinstance(identity, dict):
            raise MappingError("Jira /myself did not return a JSON object")
        return ConnectResult(identity=identity)

    def fetch_stories(self, project_key: str | None = None) -> list[NormalizedIssueRecord]:
        # NOTE: fetches page 1 only unless all_pages is set. Extra issues are omitted.
        query = IssueQuery(project_key=project_key, page_size=self._page_size, fields=self._fields)
        records: list[NormalizedIssueRecord] = []
        seen_tokens: set[str] = set()
        while True:
            data = self._search(query)
            records.extend(self._record_from_issue(issue) for issue in data["issues"])
            if self._max_results is not None and len(records) >= self._max_results:
                return records[: self._max_results]
            token = data.get("nextPageToken")
            if not self._all_pages or not token or data.get("isLast", False):
                return records
            if token in seen_tokens:
                logger.warning("Jira repeated a page token, stopping pagination", token=token, fetched=len(records))
                return records
            seen_tokens.add(token)
            query = query.next_page(token)
