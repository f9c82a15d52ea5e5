from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/recruitment.db"
    openai_api_key: str = ""
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Text generation
    chat_model: str = "gpt-4o-mini"
    # USD per 1M tokens, used for cost logging only
    chat_cost_per_million: float = 0.15

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_max_chars: int = 8000
    embedding_cost_per_million: float = 0.02
    embedding_delay_ms: int = 100

    # Response cache
    cache_ttl_seconds: int = 600

    # Retrieval limits
    default_result_limit: int = 20
    candidate_sample_size: int = 500
    top_n_pool_size: int = 200
    history_window: int = 6

    # Semantic search thresholds (cosine similarity)
    semantic_threshold: float = 0.7
    jd_match_threshold: float = 0.75

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
