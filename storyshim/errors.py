"""Error taxonomy shared by the core, the service layer and the CLI."""


class ShimError(Exception):
    """Base class for every failure raised by storyshim."""

    kind = "internal"


class ValidationError(ShimError):
    """Caller input is malformed. No network call was made."""

    kind = "validation"


class TransportError(ShimError):
    """The tracker could not be reached (DNS, refused connection, timeout)."""

    kind = "transport"


class RemoteError(ShimError):
    """The tracker answered with a non-2xx status."""

    kind = "remote"

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Jira returned {status_code} {reason}".rstrip())


class MappingError(ShimError):
    """The tracker answered 2xx but the payload does not have the expected shape."""

    kind = "mapping"
