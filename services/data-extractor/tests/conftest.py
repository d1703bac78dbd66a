"""Shared test fixtures for data extractor tests."""

import json
import re
import sys
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.language_models.llms import LLM

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import RetrievedDocument  # noqa: E402
from schema_builder import ExtractionSchema, build_schema  # noqa: E402


class ScriptedLLM(LLM):
    """Language model whose reply is computed from the prompt; records every prompt."""

    reply: Callable[[str], str]
    calls: list[str] = []

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _call(self, prompt: str, stop: list[str] | None = None, run_manager: Any = None, **kwargs: Any) -> str:
        self.calls.append(prompt)
        return self.reply(prompt)


def scripted_llm(answers: dict[str, str]) -> ScriptedLLM:
    """Field matching prompts get the field named in the question,
    answer prompts get ``answers[field]``."""

    def reply(prompt: str) -> str:
        field = re.search(r"what is (\w+)", prompt).group(1)
        if "match JSON data schema fields" in prompt:
            return json.dumps({"field_name": field})
        return answers[field]

    return ScriptedLLM(reply=reply)


def sequence_llm(*replies: str | Exception) -> ScriptedLLM:
    """Replies in order; an exception in the sequence is raised instead."""
    pending = list(replies)

    def reply(prompt: str) -> str:
        item = pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return ScriptedLLM(reply=reply)


@pytest.fixture
def invoice_schema() -> ExtractionSchema:
    return build_schema(
        ["Invoice_Number", "Quantity"],
        [
            "a unique, sequential code that is systematically assigned to invoices",
            "total quantity of commodities",
        ],
    )


@pytest.fixture
def invoice_documents() -> list[RetrievedDocument]:
    return [
        RetrievedDocument(text="Invoice No: INV-001\nDate: 2023-04-01", metadata={"source": "invoice.pdf", "score": 0.91}),
        RetrievedDocument(text="Qty: 12 pallets of copper wire", metadata={"source": "invoice.pdf", "score": 0.84}),
    ]


@pytest.fixture
def mock_retriever(invoice_documents: list[RetrievedDocument]) -> MagicMock:
    """Retriever returning the invoice documents for any query."""
    retriever = MagicMock()
    retriever.get_relevant_documents = AsyncMock(return_value=invoice_documents)
    return retriever


@pytest.fixture
def make_llm():
    return scripted_llm


@pytest.fixture
def replies_llm():
    return sequence_llm


@pytest.fixture
def invoice_llm() -> ScriptedLLM:
    return scripted_llm({
        "Invoice_Number": '{"Invoice_Number": "INV-001"}',
        "Quantity": '```json\n{"Quantity": "12"}\n```',
    })


@pytest.fixture
def reply_llm():
    """Model whose reply is ``reply(prompt)``."""
    return lambda reply: ScriptedLLM(reply=reply)
