"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (in priority order) environment variables, then a
``.env`` file in the project root, then the defaults below.  Field names map
to upper-cased environment variables: ``openai_api_key`` ← ``OPENAI_API_KEY``.

An empty ``openai_api_key`` means "no embedding model configured": the
pipeline still ingests and persists chunks, and search runs in keyword
fallback mode.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Benefits document pipeline settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Embedding model ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, local gateway, ...)
    openai_embedding_model: str = ""

    # === Vector index ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "benefit_document_chunks"

    # === Chunk / document metadata store ===
    database_path: str = "data/benefits_rag.db"

    # === Chunking ===
    chunk_max_size: int = 1000
    chunk_overlap_size: int = 200

    # === Search ===
    search_default_limit: int = 5
    context_max_chars: int = 8000

    # === Collaborators ===
    notification_webhook_url: str = ""  # Empty = log notifications only
    blob_fetch_timeout: float = 30.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: str = "*"  # Comma-separated; "*" allows any origin

    def embedding_configured(self) -> bool:
        """Return ``True`` when an embedding model API key is present."""
        return bool(self.openai_api_key)

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()] or ["*"]
