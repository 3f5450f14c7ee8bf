from __future__ import annotations

from enum import Enum
from typing import List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from . import rules
from .errors import UnknownFormatError


class SourceFormat(str, Enum):
    STARLING = "starling"
    REVOLUT = "revolut"
    # Identity layout, used to re-normalize already converted files.
    FREEAGENT = "freeagent"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def required_columns(self) -> Tuple[str, ...]:
        return _REQUIRED_COLUMNS[self]

    @classmethod
    def parse(cls, value: Union["SourceFormat", str, None]) -> "SourceFormat":
        """Resolve a format identifier, ignoring case and surrounding whitespace."""
        if isinstance(value, cls):
            return value
        choices = [member.value for member in cls]
        if value is None:
            raise UnknownFormatError(None, choices)
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise UnknownFormatError(str(value), choices)


_LABELS = {
    SourceFormat.STARLING: "Starling",
    SourceFormat.REVOLUT: "Revolut",
    SourceFormat.FREEAGENT: "FreeAgent",
}

_REQUIRED_COLUMNS = {
    SourceFormat.STARLING: rules.STARLING_COLUMNS,
    SourceFormat.REVOLUT: rules.REVOLUT_COLUMNS,
    SourceFormat.FREEAGENT: rules.FREEAGENT_COLUMNS,
}


class NormalizedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = Field(examples=["01/02/2024"])
    amount: str = Field(examples=["-12.50"])
    description: str = Field(examples=["Acme Ltd. - INV1"])

    def as_row(self) -> List[str]:
        return [self.date, self.amount, self.description]

    def as_raw(self) -> dict:
        """Column mapping in the FreeAgent identity layout."""
        return dict(zip(rules.FREEAGENT_COLUMNS, self.as_row()))


class NormalizedCsv(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content_b64: str


class ConvertResponse(BaseModel):
    source_format: SourceFormat
    filename: str = Field(examples=["statement_freeagent.csv"])
    rows: int = 0
    records: List[NormalizedRecord] = Field(default_factory=list)
    normalized_csv: NormalizedCsv


class FormatInfo(BaseModel):
    id: SourceFormat
    label: str
    required_columns: List[str]


class HealthResponse(BaseModel):
    ok: bool = True
