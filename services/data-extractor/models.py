"""Pydantic models for the extraction API and the retrieval chain."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ExtractRequest(BaseModel):
    dataFields: list[str]
    dataFieldsDescription: list[str]


class ErrorResponse(BaseModel):
    error: str


class FieldDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str


class FieldMatch(BaseModel):
    field_name: str


class ChatMessage(BaseModel):
    role: Literal["human", "ai", "system"]
    content: str


class RetrievedDocument(BaseModel):
    text: str
    metadata: dict[str, Any] = {}


class ChainResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: dict[str, Any]
    source_documents: list[RetrievedDocument] | None = Field(default=None, alias="sourceDocuments")
