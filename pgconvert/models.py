"""Value types shared by the conversion core and its callers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ConversionKind(str, Enum):
    MYBATIS_MAPPER = "MYBATIS"
    FUNCTION_OR_PROCEDURE = "FUNCTION"
    SQL_QUERY = "SQL"


class FailureKind(str, Enum):
    VALIDATION = "validation"
    EXTERNAL_CALL = "external_call"
    ENTITLEMENT = "entitlement"
    UNEXPECTED_RESPONSE = "unexpected_response"


@dataclass(frozen=True)
class ConversionSuccess:
    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ConversionFailure:
    kind: FailureKind
    message: str

    @property
    def ok(self) -> bool:
        return False


ConversionOutcome = Union[ConversionSuccess, ConversionFailure]


@dataclass(frozen=True)
class ConversionRecord:
    """One successful conversion, as kept by the caller's history."""

    original: str
    converted: str
    timestamp: float
    source_name: Optional[str] = None
