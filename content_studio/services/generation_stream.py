import logging
from typing import AsyncGenerator, Optional

from content_studio.core.brands import get_brand
from content_studio.core.container import ServiceContainer
from content_studio.models.domain import GenerationOptions
from content_studio.services.ad_copy import generate_ad_copy
from content_studio.services.asset_extraction import (
    build_asset_prompt_text,
    get_context_summary,
    load_generation_context,
)
from content_studio.services.feedback import format_approved_content_as_inspiration
from content_studio.services.instructions import check_missing_instructions
from content_studio.services.text_generation import generate_text_content
from content_studio.utils.sse import sse_event

logger = logging.getLogger(__name__)


async def text_generation_event_generator(
    container: ServiceContainer,
    brand_id: str,
    content_type: str,
    prompt: str,
    options: GenerationOptions,
    regeneration_feedback: Optional[str] = None,
) -> AsyncGenerator[str, None]:
    """
    Generates SSE events for one text generation: instruction loading,
    missing-configuration warnings, a summary of the brand assets in play,
    the model call, then the result.
    """
    try:
        brand = get_brand(brand_id)
        if brand is None:
            yield sse_event("error", error=f"Unknown brand: {brand_id}")
            return

        yield sse_event("status", status="loading_instructions", brand=brand_id)
        instructions = await container.instructions.get(brand_id)

        missing = check_missing_instructions(instructions, content_type, options.email_type)
        if missing:
            yield sse_event("warning", missing=[m.__dict__ for m in missing])

        asset_context = None
        try:
            context = await load_generation_context(container.assets, brand_id, instructions)
            yield sse_event("context", summary=get_context_summary(context).to_document())
            asset_context = await build_asset_prompt_text(context, container.extractor)
        except Exception as e:
            logger.warning(f"Generating without brand assets for {brand_id}: {e}")

        yield sse_event("status", status="generating", contentType=content_type)
        result = await generate_text_content(
            content_type,
            prompt,
            brand,
            instructions,
            options,
            regeneration_feedback=regeneration_feedback,
            patterns=container.patterns,
            asset_context=asset_context,
        )
        yield sse_event("done", result=result.to_document())

    except Exception as e:
        logger.error(f"Error in text generation for {brand_id}: {e}")
        yield sse_event("error", error=str(e))


async def ad_copy_event_generator(
    container: ServiceContainer,
    brand_id: str,
    prompt: str,
    inspiration_limit: int = 10,
) -> AsyncGenerator[str, None]:
    try:
        brand = get_brand(brand_id)
        if brand is None:
            yield sse_event("error", error=f"Unknown brand: {brand_id}")
            return

        yield sse_event("status", status="loading_inspiration", brand=brand_id)
        approved = await container.approved.get_approved_content_for_brand(brand_id, limit=inspiration_limit)
        inspiration = format_approved_content_as_inspiration(approved)

        yield sse_event("status", status="generating", format="auto")
        result = await generate_ad_copy(prompt, brand, inspiration)

        yield sse_event(
            "done",
            format=result.config.type,
            variations=[v.to_document() for v in result.variations],
            validations=[{"isValid": v.is_valid, "errors": v.errors} for v in result.validations],
            content=result.content,
        )

    except Exception as e:
        logger.error(f"Error in ad copy generation for {brand_id}: {e}")
        yield sse_event("error", error=str(e))
