import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    gemini_api_key: str = ""

    # "openai" or "ollama"
    llm_provider: str = "openai"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5"

    fast_text_model: str = "gpt-4o-mini"
    rich_text_model: str = "gpt-4o"
    pattern_model: str = "gemini-1.5-pro"
    refine_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    tts_model: str = "tts-1-hd"
    text_temperature: float = 0.8

    # "memory" or "mcp"
    document_store: str = "memory"
    mcp_server_url: str = "http://localhost:7999/sse"

    # "memory" or "supabase"
    blob_storage: str = "memory"
    supabase_url: str = ""
    supabase_service_key: str = ""
    asset_bucket: str = "brand-assets"

    pattern_refresh_concurrency: int = 3


def load_settings() -> Settings:
    """Build settings from the environment (and a local .env if present)."""
    load_dotenv()
    defaults = Settings()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        llm_provider=os.getenv("LLM_PROVIDER", defaults.llm_provider).lower(),
        ollama_base_url=os.getenv("OLLAMA_BASE_URL", defaults.ollama_base_url),
        ollama_model=os.getenv("OLLAMA_MODEL", defaults.ollama_model),
        fast_text_model=os.getenv("FAST_TEXT_MODEL", defaults.fast_text_model),
        rich_text_model=os.getenv("RICH_TEXT_MODEL", defaults.rich_text_model),
        pattern_model=os.getenv("PATTERN_MODEL", defaults.pattern_model),
        refine_model=os.getenv("REFINE_MODEL", defaults.refine_model),
        image_model=os.getenv("IMAGE_MODEL", defaults.image_model),
        tts_model=os.getenv("TTS_MODEL", defaults.tts_model),
        text_temperature=float(os.getenv("TEXT_TEMPERATURE", defaults.text_temperature)),
        document_store=os.getenv("DOCUMENT_STORE", defaults.document_store).lower(),
        mcp_server_url=os.getenv("MCP_SERVER_URL", defaults.mcp_server_url),
        blob_storage=os.getenv("BLOB_STORAGE", defaults.blob_storage).lower(),
        supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY", ""),
        asset_bucket=os.getenv("ASSET_BUCKET", defaults.asset_bucket),
        pattern_refresh_concurrency=int(
            os.getenv("PATTERN_REFRESH_CONCURRENCY", defaults.pattern_refresh_concurrency)
        ),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
