"""Inbound operations: validate-and-connect and fetch-stories.

Both return either a result model or an ErrorResult carrying an
HTTP-status-like code, so a web route or the CLI can render them directly.
"""

from collections.abc import Mapping
from typing import Any

from storyshim.client import RemoteClient
from storyshim.errors import MappingError, RemoteError, ShimError, TransportError, ValidationError
from storyshim.events import EventSink, LoguruSink, track
from storyshim.models import ConnectResult, ErrorResult, StoriesResult
from storyshim.providers.jira import JiraProvider
from storyshim.settings import StoryshimSettings

CONNECT_FAILED = "Failed to connect to Jira. Check credentials."
UNREACHABLE = "Could not reach Jira. Check the base URL and your network connection."
BAD_RESPONSE = "Unexpected response from Jira"


def _error_result(exc: ShimError, remote_message: str) -> ErrorResult:
    match exc:
        case ValidationError():
            return ErrorResult(error=str(exc), kind="validation", status_code=400)
        case RemoteError():
            return ErrorResult(error=remote_message, kind="remote", status_code=exc.status_code, details=exc.body)
        case TransportError():
            return ErrorResult(error=UNREACHABLE, kind="transport", status_code=502, details=str(exc))
        case MappingError():
            return ErrorResult(error=BAD_RESPONSE, kind="mapping", status_code=502, details=str(exc))
    raise exc


def _provider(config: Any, settings: StoryshimSettings | None, client: RemoteClient | None) -> JiraProvider:
    if settings is None:
        return JiraProvider(config, client=client)
    return JiraProvider.from_settings(config, settings, client=client)


def validate_and_connect(
    raw: Any,
    *,
    settings: StoryshimSettings | None = None,
    client: RemoteClient | None = None,
    sink: EventSink | None = None,
) -> ConnectResult | ErrorResult:
    """Check the credentials in ``raw`` against /rest/api/3/myself."""
    try:
        with track(sink or LoguruSink(), "jira.connect") as probe:
            result = _provider(raw, settings, client).validate_credentials()
            probe.status_code = 200
    except ShimError as exc:
        return _error_result(exc, CONNECT_FAILED)
    return result


def fetch_stories(
    raw: Any,
    *,
    settings: StoryshimSettings | None = None,
    client: RemoteClient | None = None,
    sink: EventSink | None = None,
) -> StoriesResult | ErrorResult:
    """Fetch Stories for ``{"config": {...}, "projectKey": "..."}``."""
    remote_message = "Failed to fetch stories"
    try:
        with track(sink or LoguruSink(), "jira.fetch_stories") as probe:
            if not isinstance(raw, Mapping):
                raise ValidationError(f"request must be an object, got {type(raw).__name__}")
            project_key = raw.get("projectKey")
            if project_key is not None and not isinstance(project_key, str):
                raise ValidationError("projectKey: must be a string")
            if project_key is None and settings is not None:
                project_key = settings.project_key
            records = _provider(raw.get("config"), settings, client).fetch_stories(project_key)
            probe.status_code = 200
    except RemoteError as exc:
        return _error_result(exc, f"{remote_message}: {exc.reason or exc.status_code}")
    except ShimError as exc:
        return _error_result(exc, remote_message)
    return StoriesResult(records=records)
