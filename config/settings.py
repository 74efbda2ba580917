"""
Configuration settings for the knowledge-base retrieval engine.

WHY THIS FILE EXISTS:
- Centralizes all configuration in one place
- Makes it easy to switch between environments (dev/prod)
- Keeps secrets separate from code (loaded from .env)

WHAT CHANGED FROM A PLAIN "ALL REQUIRED" CONFIG:
Missing Azure credentials are no longer a settings error. Without them the
embedding provider simply fails to start and the retriever answers queries
with keyword search instead.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw:
        return None
    items = [item.strip() for item in raw.split(",")]
    return [item for item in items if item]


@dataclass
class AzureOpenAIConfig:
    """
    Configuration for Azure OpenAI embeddings.

    Deployment Name: the name you gave when deploying a model
    (this is different from the model name itself).
    """
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    api_version: str = "2024-02-15-preview"
    embedding_deployment: str = "text-embedding"

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)


@dataclass
class EmbeddingConfig:
    """
    Which embedding backend to use.

    - azure: hosted Azure OpenAI deployment (needs credentials)
    - local: sentence-transformers model run in-process
    """
    backend: str = "azure"
    local_model: str = "all-MiniLM-L6-v2"
    batch_size: int = 16


@dataclass
class ChunkingConfig:
    """
    Configuration for document chunking.

    WHY THESE DEFAULTS:
    - chunk_size=1000: ~250 words, fits well in context window
    - chunk_overlap=200: 20% overlap preserves context at boundaries
    """
    chunk_size: int = 1000       # Characters per chunk
    chunk_overlap: int = 200     # Overlap between chunks


@dataclass
class RetrievalConfig:
    """Number of chunks handed back to the question-answering layer."""
    top_k: int = 5


@dataclass
class KeywordConfig:
    """
    Scoring knobs for the keyword fallback.

    - min_term_length=3: query terms of 2 characters or fewer are dropped
    - phrase_bonus=10: added when the whole query appears verbatim
    """
    min_term_length: int = 3
    phrase_bonus: int = 10


@dataclass
class CacheConfig:
    """Where the vector store snapshot lives between restarts."""
    path: str = ".vectorstore-cache.json"


@dataclass
class LoaderConfig:
    """Knowledge base location used by the seed-kb command."""
    kb_dir: Optional[str] = None
    file_names: Optional[List[str]] = None


@dataclass
class Settings:
    """
    Main settings container.

    WHY NESTED CONFIGS:
    - Organized by domain (embeddings, chunking, retrieval, cache)
    - Easy to modify one area without affecting others
    """
    azure: AzureOpenAIConfig = field(default_factory=AzureOpenAIConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    keyword: KeywordConfig = field(default_factory=KeywordConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """
    Load settings from environment variables.

    OPTIONAL ENVIRONMENT VARIABLES:
    - AZURE_OPENAI_ENDPOINT / AZURE_OPENAI_API_KEY: hosted embeddings
    - EMBEDDING_BACKEND: "azure" (default) or "local"
    - CHUNK_SIZE / CHUNK_OVERLAP / RETRIEVAL_TOP_K
    - VECTORSTORE_CACHE_PATH: cache file location
    - KB_DIR / KB_FILES: knowledge base documents for seed-kb
    """
    return Settings(
        azure=AzureOpenAIConfig(
            endpoint=os.getenv("AZURE_OPENAI_ENDPOINT"),
            api_key=os.getenv("AZURE_OPENAI_API_KEY"),
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
            embedding_deployment=os.getenv(
                "AZURE_OPENAI_EMBEDDING_DEPLOYMENT", "text-embedding"
            ),
        ),
        embedding=EmbeddingConfig(
            backend=os.getenv("EMBEDDING_BACKEND", "azure").strip().lower(),
            local_model=os.getenv("EMBEDDING_LOCAL_MODEL", "all-MiniLM-L6-v2"),
            batch_size=_env_int("EMBEDDING_BATCH_SIZE", 16),
        ),
        chunking=ChunkingConfig(
            chunk_size=_env_int("CHUNK_SIZE", 1000),
            chunk_overlap=_env_int("CHUNK_OVERLAP", 200),
        ),
        retrieval=RetrievalConfig(top_k=_env_int("RETRIEVAL_TOP_K", 5)),
        keyword=KeywordConfig(),
        cache=CacheConfig(
            path=os.getenv("VECTORSTORE_CACHE_PATH", ".vectorstore-cache.json")
        ),
        loader=LoaderConfig(
            kb_dir=os.getenv("KB_DIR"),
            file_names=_env_list("KB_FILES"),
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


# Singleton pattern - load settings once and reuse
_settings = None

def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
