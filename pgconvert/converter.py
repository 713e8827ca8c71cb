"""Single-request Oracle to PostgreSQL conversion through the hosted model."""
from __future__ import annotations

import datetime
import logging
import re
from typing import Callable, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from pgconvert import prompts
from pgconvert.llm import MODEL_NAME, ChatModelFactory, build_chat_model, message_text
from pgconvert.models import (
    ConversionFailure,
    ConversionKind,
    ConversionOutcome,
    ConversionSuccess,
    FailureKind,
)

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Message the Gemini API returns when the bound project or key cannot be found.
ENTITLEMENT_MARKER = "Requested entity was not found"

_OPENING_FENCE = re.compile(r"\A```[\w+#.-]*[ \t]*\r?\n")
_CLOSING_FENCE = re.compile(r"(?:\A|\r?\n)```[ \t]*\Z")


def strip_code_fence(text: Optional[str]) -> str:
    """Remove one outer markdown code fence pair, leaving the body untouched."""
    cleaned = (text or "").strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def classify_failure(message: str) -> FailureKind:
    if ENTITLEMENT_MARKER in (message or ""):
        return FailureKind.ENTITLEMENT
    return FailureKind.EXTERNAL_CALL


class ConversionOrchestrator:
    """Runs one model round trip per :meth:`convert` call.

    ``model_factory`` is called on every conversion so that a changed API key
    is picked up without restarting. ``today`` supplies the date written into
    routine headers.
    """

    def __init__(
        self,
        model_factory: Optional[ChatModelFactory] = None,
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        self.model_factory = model_factory or build_chat_model
        self.today = today or datetime.date.today

    @staticmethod
    def get_model_identifier() -> str:
        return MODEL_NAME

    async def convert(self, kind: ConversionKind, content: str) -> ConversionOutcome:
        context_date = self.today().isoformat()
        instruction = prompts.resolve(kind, context_date)
        kind = ConversionKind(kind)
        logger.info("Converting %s (%d chars)", kind.value, len(content))

        messages = [
            SystemMessage(content=instruction),
            HumanMessage(content=content),
        ]
        try:
            llm = self.model_factory()
            response = await llm.ainvoke(messages)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            failure_kind = classify_failure(message)
            logger.error("Conversion of %s failed (%s): %s", kind.value, failure_kind.value, message)
            return ConversionFailure(kind=failure_kind, message=message)

        try:
            text = message_text(response)
        except TypeError as exc:
            logger.error("Unusable response for %s: %s", kind.value, exc)
            return ConversionFailure(kind=FailureKind.UNEXPECTED_RESPONSE, message=str(exc))

        cleaned = strip_code_fence(text)
        logger.debug(
            "Conversion of %s done (raw len=%d, cleaned len=%d)",
            kind.value,
            len(text),
            len(cleaned),
        )
        return ConversionSuccess(text=cleaned)


_default_orchestrator = ConversionOrchestrator()


def get_model_identifier() -> str:
    return MODEL_NAME


async def convert(kind: ConversionKind, content: str) -> ConversionOutcome:
    """Convert ``content`` with the default orchestrator."""
    return await _default_orchestrator.convert(kind, content)
