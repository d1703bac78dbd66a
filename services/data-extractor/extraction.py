"""Extraction orchestrator: schema -> per-field match + retrieval chain -> merge.

All fields of a request run concurrently; the first failing field cancels the
others and fails the whole request, so no partial result is returned.
"""

import asyncio
import logging
import time
from typing import Any

from langchain_core.runnables import Runnable

from config import settings
from field_matcher import match_field
from output_parser import build_output_parser
from retrieval_chain import ConversationalRetrievalChain
from schema_builder import ExtractionSchema, build_schema
from vector_store import Retriever

logger = logging.getLogger(__name__)


def field_question(field: str) -> str:
    return f"what is {field}".strip().replace("\n", " ")


async def extract_field(
    field: str,
    schema: ExtractionSchema,
    chain: ConversationalRetrievalChain,
    llm: Runnable,
) -> tuple[str, Any]:
    """Run matcher and retrieval chain for a single field.

    Returns ``(field, value)``. Only the value of the matched slot is taken
    from the answer, other keys the model filled in are dropped.
    """
    question = field_question(field)
    matched = await match_field(question, schema, llm)
    if matched != field:
        logger.warning("Question for field %s was matched to %s", field, matched)
    result = await chain.call({
        "question": question,
        "chat_history": [],
        "format_instructions": schema.format_instructions(required=[matched]),
    })
    return field, result.answer.get(matched)


async def run_extraction(
    fields: list[str],
    descriptions: list[str],
    llm: Runnable,
    retriever: Retriever,
    max_concurrency: int | None = None,
) -> dict[str, Any]:
    """Extract a value for every field from the indexed corpus."""
    start = time.monotonic()
    schema = build_schema(fields, descriptions)

    chain = ConversationalRetrievalChain.from_llm(
        llm,
        retriever,
        output_parser=build_output_parser(schema, llm),
        return_source_documents=settings.RETURN_SOURCE_DOCUMENTS,
    )

    limit = max_concurrency if max_concurrency is not None else settings.MAX_CONCURRENT_FIELDS
    semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    async def run_one(field: str) -> tuple[str, Any]:
        if semaphore is None:
            return await extract_field(field, schema, chain, llm)
        async with semaphore:
            return await extract_field(field, schema, chain, llm)

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(run_one(name)) for name in schema.field_names]
    except ExceptionGroup as eg:
        first = eg.exceptions[0]
        logger.error("Extraction failed for %d of %d fields: %s", len(eg.exceptions), len(tasks), first)
        raise first

    result = dict(task.result() for task in tasks)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info("Extracted %d fields in %dms", len(result), elapsed_ms)
    return result
