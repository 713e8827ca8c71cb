"""Oracle to PostgreSQL conversion through a hosted Gemini model."""

from .converter import ConversionOrchestrator, convert, get_model_identifier, strip_code_fence
from .models import (
    ConversionFailure,
    ConversionKind,
    ConversionOutcome,
    ConversionRecord,
    ConversionSuccess,
    FailureKind,
)
from .session import ConversionHistory, ConversionSession

__all__ = [
    "ConversionFailure",
    "ConversionHistory",
    "ConversionKind",
    "ConversionOrchestrator",
    "ConversionOutcome",
    "ConversionRecord",
    "ConversionSession",
    "ConversionSuccess",
    "FailureKind",
    "convert",
    "get_model_identifier",
    "strip_code_fence",
]
