"""Abstract base class for issue tracker providers."""

from abc import ABC, abstractmethod

from storyshim.models import ConnectResult, NormalizedIssueRecord


class TrackerProvider(ABC):
    @abstractmethod
    def validate_credentials(self) -> ConnectResult: ...

    @abstractmethod
    def fetch_stories(self, project_key: str | None = None) -> list[NormalizedIssueRecord]: ...
