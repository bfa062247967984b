"""Operation events emitted by the Jira core to an injected sink."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict

from storyshim.errors import ShimError

_OUTCOMES = {
    "validation": "validation_failed",
    "transport": "transport_failed",
    "remote": "remote_rejected",
    "mapping": "mapping_failed",
}


class OperationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation: str
    outcome: str
    latency_ms: float
    status_code: int | None = None


class EventSink(Protocol):
    """Receives one event per core operation. Must not raise."""

    def emit(self, event: OperationEvent) -> None: ...


class NullSink:
    def emit(self, event: OperationEvent) -> None:
        pass


class LoguruSink:
    """Default sink: one loguru record per operation, event fields as extras."""

    def emit(self, event: OperationEvent) -> None:
        level = "INFO" if event.outcome == "success" else "WARNING"
        logger.log(level, "Jira operation finished", **event.model_dump())


class _Probe:
    status_code: int | None = None


@contextmanager
def track(sink: EventSink, operation: str) -> Iterator[_Probe]:
    """Time the enclosed block and emit its outcome. Exceptions propagate unchanged."""
    probe = _Probe()
    start = time.perf_counter()
    try:
        yield probe
    except ShimError as exc:
        sink.emit(
            OperationEvent(
                operation=operation,
                outcome=_OUTCOMES.get(exc.kind, "failed"),
                latency_ms=(time.perf_counter() - start) * 1000,
                status_code=getattr(exc, "status_code", None),
            )
        )
        raise
    sink.emit(
        OperationEvent(
            operation=operation,
            outcome="success",
            latency_ms=(time.perf_counter() - start) * 1000,
            status_code=probe.status_code,
        )
    )
