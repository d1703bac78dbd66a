"""Environment-based configuration for the data extractor service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Data extractor settings, loaded from environment variables."""

    # Server
    PORT: int = 8092

    # Ollama (chat completions and embeddings)
    OLLAMA_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.1"
    OLLAMA_EMBED_MODEL: str = "nomic-embed-text"
    TEMPERATURE: float = 0.0  # Deterministic output keeps the fixing parser reliable

    # Pinecone (empty key = vector index unavailable, local dev default)
    PINECONE_API_KEY: str = ""
    PINECONE_INDEX_NAME: str = "data-extractor"
    PINECONE_NAMESPACE: str = "pdf-test"

    # Retrieval and fan-out
    RETRIEVER_TOP_K: int = 4
    RETURN_SOURCE_DOCUMENTS: bool = True
    MAX_CONCURRENT_FIELDS: int = 8  # 0 = one task per field, unbounded

    # Ingestion
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
