"""Ollama language and embedding models behind one client.

Generation and embeddings go through ``langchain_ollama``; every Ollama or
transport failure surfaces as UpstreamError so the request that triggered it
fails as a whole.
"""

import logging
from contextlib import contextmanager
from typing import Any

import httpx
import ollama
from langchain_core.runnables import Runnable, RunnableLambda
from langchain_ollama import OllamaEmbeddings, OllamaLLM

from config import settings
from errors import UpstreamError

logger = logging.getLogger(__name__)


@contextmanager
def _upstream_errors(what: str):
    try:
        yield
    except ollama.ResponseError as e:
        logger.error("Ollama %s error (%s): %s", what, e.status_code, e.error)
        raise UpstreamError(f"{what.capitalize()} error: {e.error}") from e
    except (httpx.HTTPError, ConnectionError) as e:
        logger.error("Ollama %s request failed: %s", what, e)
        raise UpstreamError(f"Cannot reach {what}: {e}") from e


class LLMClient:
    """Generation and embedding calls against a single Ollama host."""

    def __init__(
        self,
        host: str | None = None,
        model: str | None = None,
        embed_model: str | None = None,
        temperature: float | None = None,
    ):
        self._host = (host or settings.OLLAMA_URL).rstrip("/")
        self._model = model or settings.OLLAMA_MODEL
        self._embed_model = embed_model or settings.OLLAMA_EMBED_MODEL
        self._temperature = temperature if temperature is not None else settings.TEMPERATURE

        self._llm = OllamaLLM(model=self._model, base_url=self._host, temperature=self._temperature)
        self._embeddings = OllamaEmbeddings(model=self._embed_model, base_url=self._host)
        self._client = ollama.AsyncClient(host=self._host)

    @property
    def model(self) -> str:
        return self._model

    def as_runnable(self) -> Runnable:
        """The chat model as a prompt -> text runnable with error mapping."""
        return RunnableLambda(self._invoke, afunc=self._ainvoke, name="ollama")

    def _invoke(self, prompt: Any) -> str:
        with _upstream_errors("language model"):
            return self._llm.invoke(prompt)

    async def _ainvoke(self, prompt: Any) -> str:
        with _upstream_errors("language model"):
            text = await self._llm.ainvoke(prompt)
        logger.debug("Model response (%d chars): %s", len(text), text[:200])
        return text

    async def generate(self, prompt: str) -> str:
        """Send a prompt to the chat model and return the generated text."""
        return await self._ainvoke(prompt)

    async def embed(self, text: str) -> list[float]:
        """Embed a single query text with the embedding model."""
        with _upstream_errors("embedding model"):
            vector = await self._embeddings.aembed_query(text)
        if not vector:
            raise UpstreamError("Embedding model returned no vectors")
        return list(vector)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        with _upstream_errors("embedding model"):
            vectors = await self._embeddings.aembed_documents(texts)
        if len(vectors) != len(texts):
            raise UpstreamError(f"Embedding model returned {len(vectors)} vectors for {len(texts)} texts")
        return [list(v) for v in vectors]

    async def health(self) -> dict:
        """Check Ollama reachability. Returns a status dict, never raises."""
        try:
            models = await self._client.list()
        except Exception as e:
            logger.warning("Ollama health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}

        names = [m.model for m in models.models]
        return {
            "status": "healthy",
            "model": self._model,
            "model_available": any(self._model in (name or "") for name in names),
        }
