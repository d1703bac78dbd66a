"""Similarity retrieval over a Pinecone index using Ollama embeddings."""

import asyncio
import logging
from typing import Any, Protocol

from pinecone import Pinecone

from config import Settings, settings
from errors import UpstreamError
from llm_client import LLMClient
from models import RetrievedDocument

logger = logging.getLogger(__name__)

TEXT_KEY = "text"


class Retriever(Protocol):
    async def get_relevant_documents(self, query: str) -> list[RetrievedDocument]: ...


def open_pinecone_index(cfg: Settings = settings) -> Any:
    """Return a handle to the configured Pinecone index."""
    if not cfg.PINECONE_API_KEY:
        raise UpstreamError("Vector index not configured (PINECONE_API_KEY is empty)")
    pc = Pinecone(api_key=cfg.PINECONE_API_KEY)
    return pc.Index(cfg.PINECONE_INDEX_NAME)


class PineconeRetriever:
    """Embed a query, then fetch the top-k most similar chunks from one namespace.

    Matches come back ordered by descending score, as Pinecone returns them.
    """

    def __init__(
        self,
        index: Any,
        embedder: LLMClient,
        namespace: str | None = None,
        k: int | None = None,
    ):
        self._index = index
        self._embedder = embedder
        self._namespace = namespace if namespace is not None else settings.PINECONE_NAMESPACE
        self._k = k if k is not None else settings.RETRIEVER_TOP_K

    async def get_relevant_documents(self, query: str) -> list[RetrievedDocument]:
        vector = await self._embedder.embed(query)

        try:
            # The Pinecone SDK is synchronous
            result = await asyncio.to_thread(
                self._index.query,
                vector=vector,
                top_k=self._k,
                namespace=self._namespace,
                include_metadata=True,
            )
        except Exception as e:
            logger.error("Pinecone query failed: %s", e)
            raise UpstreamError(f"Vector index query failed: {e}") from e

        docs = [_to_document(match) for match in result.matches]
        logger.info("Retrieved %d documents from namespace %s", len(docs), self._namespace)
        return docs


def _to_document(match: Any) -> RetrievedDocument:
    metadata = dict(match.metadata or {})
    text = metadata.pop(TEXT_KEY, "")
    metadata["score"] = match.score
    return RetrievedDocument(text=str(text), metadata=metadata)
