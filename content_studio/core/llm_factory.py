import logging
from typing import Optional

from content_studio.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Short-form content goes to the fast model; long-form to the richer one.
RICH_CONTENT_TYPES = ("blog", "landing-page")


def get_ollama_llm(temperature: float = 0, model: Optional[str] = None, json_mode: bool = False,
                   settings: Optional[Settings] = None):
    """Create an Ollama LLM instance for local runs."""
    from langchain_ollama import ChatOllama

    settings = settings or get_settings()
    kwargs = {"format": "json"} if json_mode else {}
    return ChatOllama(
        model=model or settings.ollama_model,
        temperature=temperature,
        base_url=settings.ollama_base_url,
        **kwargs,
    )


def text_model_for(content_type: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    if content_type in RICH_CONTENT_TYPES:
        return settings.rich_text_model
    return settings.fast_text_model


def get_text_llm(content_type: str = "ad-copy", settings: Optional[Settings] = None):
    """Chat model for copy generation, constrained to reply with a JSON object.

    Centralizes LLM creation so all generation paths share the same config.
    """
    settings = settings or get_settings()
    if settings.llm_provider == "ollama":
        return get_ollama_llm(temperature=settings.text_temperature, json_mode=True, settings=settings)

    from langchain_openai import ChatOpenAI

    model = text_model_for(content_type, settings)
    logger.info(f"Using {model} for {content_type}")
    llm = ChatOpenAI(
        model=model,
        temperature=settings.text_temperature,
        api_key=settings.openai_api_key or None,
    )
    return llm.bind(response_format={"type": "json_object"})


def _gemini_llm(model: str, temperature: float, settings: Settings):
    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=model,
        temperature=temperature,
        google_api_key=settings.gemini_api_key or None,
    )


def get_pattern_llm(settings: Optional[Settings] = None):
    """Model used to read worked examples and extract reusable patterns."""
    settings = settings or get_settings()
    if settings.llm_provider == "ollama":
        return get_ollama_llm(temperature=0.2, json_mode=True, settings=settings)
    return _gemini_llm(settings.pattern_model, 0.2, settings)


def get_refine_llm(settings: Optional[Settings] = None):
    settings = settings or get_settings()
    if settings.llm_provider == "ollama":
        return get_ollama_llm(temperature=0.7, settings=settings)
    return _gemini_llm(settings.refine_model, 0.7, settings)


def get_extraction_llm(settings: Optional[Settings] = None):
    """Gemini model that reads uploaded documents (PDF guidelines, reference copy) back as plain text."""
    settings = settings or get_settings()
    return _gemini_llm(settings.refine_model, 0, settings)
