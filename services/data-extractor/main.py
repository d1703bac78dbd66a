"""FastAPI data extractor service.

Extracts user-defined data fields from a Pinecone-indexed corpus using an
Ollama model. Any failure in the pipeline yields HTTP 500 with ``{"error": ...}``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import settings
from extraction import run_extraction
from llm_client import LLMClient
from models import ErrorResponse, ExtractRequest
from vector_store import PineconeRetriever, Retriever, open_pinecone_index

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_llm: LLMClient | None = None
_retriever: Retriever | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the model client and, if configured, the vector index retriever."""
    global _llm, _retriever

    logger.info("Using Ollama at %s (model=%s)", settings.OLLAMA_URL, settings.OLLAMA_MODEL)
    _llm = LLMClient()

    if not settings.PINECONE_API_KEY:
        logger.info("Vector index not configured (PINECONE_API_KEY is empty), extraction disabled")
        _retriever = None
    else:
        logger.info(
            "Connecting to Pinecone index %s (namespace=%s)",
            settings.PINECONE_INDEX_NAME,
            settings.PINECONE_NAMESPACE,
        )
        _retriever = PineconeRetriever(open_pinecone_index(), _llm)

    yield

    _llm = None
    _retriever = None


app = FastAPI(title="Data Field Extractor", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected malformed request body: %s", exc.errors())
    return JSONResponse(status_code=500, content={"error": f"Invalid request body: {exc.errors()}"})


@app.post("/api/chat", responses={500: {"model": ErrorResponse}})
async def chat(req: ExtractRequest):
    """Extract a value for each requested data field."""
    if _llm is None or _retriever is None:
        return JSONResponse(
            status_code=500,
            content={"error": "Data extraction is not available - no vector index configured"},
        )

    logger.info("Processing extraction: fields=%s", req.dataFields)

    try:
        result = await run_extraction(req.dataFields, req.dataFieldsDescription, _llm.as_runnable(), _retriever)
    except Exception as e:
        logger.exception("Extraction failed")
        return JSONResponse(status_code=500, content={"error": str(e) or "Something went wrong"})

    return result


@app.get("/health")
async def health():
    """Return service status, model reachability and index configuration."""
    base = {
        "status": "healthy",
        "vector_index_configured": _retriever is not None,
    }

    if _llm is not None:
        base["llm_health"] = await _llm.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
