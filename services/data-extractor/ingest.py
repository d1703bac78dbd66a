"""Load text documents into the Pinecone namespace the extractor queries.

Usage: python ingest.py FILE [FILE ...]
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from config import settings
from errors import UpstreamError
from llm_client import LLMClient
from vector_store import TEXT_KEY, open_pinecone_index

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 100


def _splitter(size: int, overlap: int) -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=size,
        chunk_overlap=overlap,
        length_function=len,
        separators=["\n\n", "\n", " ", ""],
    )


def chunk_text(text: str, size: int | None = None, overlap: int | None = None) -> list[str]:
    """Split text into chunks of at most ``size`` characters.

    Splits on paragraphs first, then lines, then words. Consecutive chunks
    share up to ``overlap`` characters.
    """
    size = size or settings.CHUNK_SIZE
    overlap = overlap if overlap is not None else settings.CHUNK_OVERLAP
    if overlap >= size:
        raise ValueError(f"Chunk overlap ({overlap}) must be smaller than chunk size ({size})")
    return _splitter(size, overlap).split_text(text)


async def ingest_texts(
    texts: dict[str, str],
    index: Any,
    embedder: LLMClient,
    namespace: str | None = None,
) -> int:
    """Embed and upsert every chunk of every text. Returns the number of vectors written.

    ``texts`` maps a source name (used in vector ids and metadata) to its content.
    """
    namespace = namespace if namespace is not None else settings.PINECONE_NAMESPACE
    vectors = []
    for source, text in texts.items():
        chunks = chunk_text(text)
        if not chunks:
            logger.warning("No text in %s, skipped", source)
            continue
        embeddings = await embedder.embed_documents(chunks)
        for i, (chunk, values) in enumerate(zip(chunks, embeddings)):
            vectors.append({
                "id": f"{source}#{i}",
                "values": values,
                "metadata": {TEXT_KEY: chunk, "source": source, "chunk": i},
            })
        logger.info("Embedded %d chunks of %s", len(chunks), source)

    for start in range(0, len(vectors), UPSERT_BATCH_SIZE):
        batch = vectors[start:start + UPSERT_BATCH_SIZE]
        try:
            await asyncio.to_thread(index.upsert, vectors=batch, namespace=namespace)
        except Exception as e:
            logger.error("Pinecone upsert failed: %s", e)
            raise UpstreamError(f"Vector index upsert failed: {e}") from e

    logger.info("Upserted %d vectors into namespace %s", len(vectors), namespace)
    return len(vectors)


def main(paths: list[str]) -> None:
    texts = {Path(p).name: Path(p).read_text(encoding="utf-8") for p in paths}
    count = asyncio.run(ingest_texts(texts, open_pinecone_index(), LLMClient()))
    print(f"Ingested {count} chunks from {len(texts)} files")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if len(sys.argv) < 2:
        sys.exit(__doc__)
    main(sys.argv[1:])
