"""Caller side of a conversion: input checks, timeout, history and messages."""
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from pathlib import PurePath
from typing import List, Optional

from pgconvert.converter import ConversionOrchestrator
from pgconvert.models import (
    ConversionFailure,
    ConversionKind,
    ConversionOutcome,
    ConversionRecord,
    FailureKind,
)

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

EMPTY_CONTENT_MESSAGE = "Please enter some content to convert."
ENTITLEMENT_MESSAGE = "API project not found. Please re-select a valid project."
HISTORY_SIZE = 10


class ConversionHistory:
    """Most-recent-first log of successful conversions, capped at ``size`` entries."""

    def __init__(self, size: int = HISTORY_SIZE):
        self._records: deque[ConversionRecord] = deque(maxlen=size)

    def add(self, record: ConversionRecord) -> None:
        self._records.appendleft(record)

    def records(self) -> List[ConversionRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


class ConversionSession:
    def __init__(
        self,
        orchestrator: Optional[ConversionOrchestrator] = None,
        timeout: Optional[float] = None,
        history_size: int = HISTORY_SIZE,
    ):
        self.orchestrator = orchestrator or ConversionOrchestrator()
        self.timeout = timeout
        self.history = ConversionHistory(history_size)

    async def submit(
        self,
        kind: ConversionKind,
        content: str,
        source_name: Optional[str] = None,
    ) -> ConversionOutcome:
        if not content or not content.strip():
            return ConversionFailure(kind=FailureKind.VALIDATION, message=EMPTY_CONTENT_MESSAGE)

        try:
            outcome = await asyncio.wait_for(
                self.orchestrator.convert(kind, content), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error("Conversion of %s timed out after %s seconds", source_name or "input", self.timeout)
            return ConversionFailure(
                kind=FailureKind.EXTERNAL_CALL,
                message=f"Conversion timed out after {self.timeout:g} seconds.",
            )

        if outcome.ok:
            self.history.add(
                ConversionRecord(
                    original=content,
                    converted=outcome.text,
                    timestamp=time.time(),
                    source_name=source_name,
                )
            )
        return outcome


def describe_failure(failure: ConversionFailure) -> str:
    """Text to show the user for ``failure``."""
    if failure.kind is FailureKind.ENTITLEMENT:
        return ENTITLEMENT_MESSAGE
    return failure.message or "An unexpected error occurred."


def default_output_name(kind: ConversionKind, source_name: Optional[str] = None) -> str:
    kind = ConversionKind(kind)
    if source_name:
        path = PurePath(source_name)
        default_suffix = ".xml" if kind is ConversionKind.MYBATIS_MAPPER else ".sql"
        return f"{path.stem}_pg{path.suffix or default_suffix}"
    return _UNNAMED_OUTPUTS[kind]


_UNNAMED_OUTPUTS = {
    ConversionKind.MYBATIS_MAPPER: "mapper_pg.xml",
    ConversionKind.FUNCTION_OR_PROCEDURE: "function_pg.sql",
    ConversionKind.SQL_QUERY: "converted.sql",
}
