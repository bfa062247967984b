"""Structural gate in front of every Jira call."""

from collections.abc import Mapping
from typing import Any

import pydantic

from storyshim.errors import ValidationError
from storyshim.models import ConnectionConfig


def _first_violation(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def validate_config(raw: Any) -> ConnectionConfig:
    """Return a normalized ConnectionConfig or raise ValidationError.

    Accepts a mapping (camelCase or snake_case keys) or an existing
    ConnectionConfig. Never touches the network.
    """
    if isinstance(raw, ConnectionConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"connection config must be an object, got {type(raw).__name__}")
    try:
        return ConnectionConfig.model_validate(dict(raw))
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_violation(exc)) from exc
