"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


class Source(BaseModel):
    uri: str
    title: str


class RelayOut(BaseModel):
    text: str
    sources: list[Source] = []


class ErrorOut(BaseModel):
    message: str


@dataclass(frozen=True)
class RelayResult:
    """Terminal result of one relay invocation: an HTTP status and a JSON body."""
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, text: str, sources: list[Source]) -> "RelayResult":
        return cls(200, RelayOut(text=text, sources=sources).model_dump())

    @classmethod
    def error(cls, status_code: int, message: str) -> "RelayResult":
        return cls(status_code, ErrorOut(message=message).model_dump())
