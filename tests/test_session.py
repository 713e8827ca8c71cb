import asyncio

import pytest

from conftest import RecordingChatModel
from pgconvert.converter import ConversionOrchestrator
from pgconvert.models import ConversionFailure, ConversionKind, ConversionRecord, FailureKind
from pgconvert.session import (
    EMPTY_CONTENT_MESSAGE,
    ENTITLEMENT_MESSAGE,
    ConversionHistory,
    ConversionSession,
    default_output_name,
    describe_failure,
)


class CountingOrchestrator(ConversionOrchestrator):
    def __init__(self, model):
        super().__init__(model_factory=lambda: model)
        self.invocations = 0

    async def convert(self, kind, content):
        self.invocations += 1
        return await super().convert(kind, content)


@pytest.mark.parametrize("content", ["", "   ", "\n\t \n"])
def test_blank_content_never_reaches_orchestrator(content):
    orchestrator = CountingOrchestrator(RecordingChatModel("SELECT 1"))
    session = ConversionSession(orchestrator)

    outcome = asyncio.run(session.submit(ConversionKind.SQL_QUERY, content))

    assert outcome == ConversionFailure(FailureKind.VALIDATION, EMPTY_CONTENT_MESSAGE)
    assert orchestrator.invocations == 0
    assert len(session.history) == 0


def test_successful_conversion_is_recorded():
    session = ConversionSession(CountingOrchestrator(RecordingChatModel("```sql\nSELECT 1;\n```")))

    outcome = asyncio.run(
        session.submit(ConversionKind.SQL_QUERY, "SELECT 1 FROM dual", source_name="q.sql")
    )

    assert outcome.ok
    (record,) = session.history.records()
    assert record.original == "SELECT 1 FROM dual"
    assert record.converted == "SELECT 1;"
    assert record.source_name == "q.sql"
    assert record.timestamp > 0


def test_failed_conversion_is_not_recorded():
    session = ConversionSession(
        CountingOrchestrator(RecordingChatModel(RuntimeError("Requested entity was not found.")))
    )

    outcome = asyncio.run(session.submit(ConversionKind.SQL_QUERY, "SELECT 1"))

    assert outcome.kind is FailureKind.ENTITLEMENT
    assert len(session.history) == 0


def test_history_keeps_ten_most_recent_first():
    history = ConversionHistory()
    for idx in range(12):
        history.add(ConversionRecord(original=str(idx), converted=str(idx), timestamp=float(idx)))

    records = history.records()

    assert len(records) == 10
    assert [r.original for r in records] == [str(i) for i in range(11, 1, -1)]


def test_timeout_becomes_external_call_failure():
    session = ConversionSession(
        CountingOrchestrator(RecordingChatModel("SELECT 1", delay=5)), timeout=0.01
    )

    outcome = asyncio.run(session.submit(ConversionKind.SQL_QUERY, "SELECT 1"))

    assert outcome.kind is FailureKind.EXTERNAL_CALL
    assert "timed out" in outcome.message


def test_describe_failure_maps_entitlement():
    failure = ConversionFailure(FailureKind.ENTITLEMENT, "Requested entity was not found.")

    assert describe_failure(failure) == ENTITLEMENT_MESSAGE


def test_describe_failure_passes_other_messages_through():
    failure = ConversionFailure(FailureKind.EXTERNAL_CALL, "API key not valid.")

    assert describe_failure(failure) == "API key not valid."


@pytest.mark.parametrize(
    "kind, source_name, expected",
    [
        (ConversionKind.MYBATIS_MAPPER, "UserMapper.xml", "UserMapper_pg.xml"),
        (ConversionKind.MYBATIS_MAPPER, None, "mapper_pg.xml"),
        (ConversionKind.FUNCTION_OR_PROCEDURE, None, "function_pg.sql"),
        (ConversionKind.FUNCTION_OR_PROCEDURE, "calc_bonus.prc", "calc_bonus_pg.prc"),
        (ConversionKind.SQL_QUERY, None, "converted.sql"),
        (ConversionKind.SQL_QUERY, "report", "report_pg.sql"),
    ],
)
def test_default_output_name(kind, source_name, expected):
    assert default_output_name(kind, source_name) == expected
