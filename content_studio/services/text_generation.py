import json
import logging
from typing import Optional

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError

from content_studio.core.defaults import FALLBACK_INSTRUCTIONS, is_placeholder
from content_studio.core.errors import UpstreamFormatError, UpstreamTransportError
from content_studio.core.llm_factory import get_refine_llm, get_text_llm
from content_studio.core.telemetry import FALLBACK_INSTRUCTIONS_USED, EventRecorder, events
from content_studio.models.domain import (
    CONTENT_TYPES,
    AdCopyVariation,
    Brand,
    BrandInstructions,
    ContentMetadata,
    GeneratedContent,
    GenerationOptions,
    TypeSpecificInstructions,
)
from content_studio.prompts import REFINE_COPY_PROMPT
from content_studio.services.patterns import PatternKnowledgeRepository
from content_studio.services.prompt_builder import PromptContext, build_system_prompt, build_user_prompt
from content_studio.utils.llm import message_text, parse_json_object

logger = logging.getLogger(__name__)


def resolve_type_instructions(
    content_type: str,
    instructions: BrandInstructions,
    email_type: Optional[str] = None,
    recorder: EventRecorder = events,
) -> tuple[TypeSpecificInstructions, bool]:
    """Return the brand's block for this content type, or the generic one if it was never configured."""
    block = instructions.for_content_type(content_type, email_type)
    if not is_placeholder(block.system_prompt):
        return block, False

    label = f"{content_type} ({email_type or 'email-blast'})" if content_type == "email" else content_type
    logger.warning(f"[{instructions.brand_id}] {label} instructions not configured - generic fallback will be used")
    recorder.increment(FALLBACK_INSTRUCTIONS_USED, brand=instructions.brand_id, content_type=content_type)
    fallback = TypeSpecificInstructions.model_validate(FALLBACK_INSTRUCTIONS[content_type])
    # Worked examples are still the brand's own, even when the rest is generic.
    return fallback.model_copy(update={"examples": block.examples}), True


async def call_json_model(llm, system_prompt: str, user_prompt: str) -> dict:
    """Send one system+user exchange to a JSON-mode chat model and parse the reply."""
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
    try:
        response = await llm.ainvoke(messages)
    except openai.APIStatusError as e:
        body = e.response.text if e.response is not None else str(e)
        logger.error(f"OpenAI API error: {e.status_code} - {body[:500]}")
        raise UpstreamTransportError(f"OpenAI API error: {e.status_code} - {body}", e.status_code, body) from e

    text = message_text(response)
    try:
        return parse_json_object(text)
    except ValueError as e:
        logger.error(f"Failed to parse JSON: {text[:500]}")
        raise UpstreamFormatError("Invalid JSON response from the language model") from e


def _word_count(text: str) -> int:
    return len(text.split())


async def generate_text_content(
    content_type: str,
    user_request: str,
    brand: Brand,
    instructions: BrandInstructions,
    options: Optional[GenerationOptions] = None,
    regeneration_feedback: Optional[str] = None,
    patterns: Optional[PatternKnowledgeRepository] = None,
    asset_context: Optional[str] = None,
    llm=None,
    recorder: EventRecorder = events,
) -> GeneratedContent:
    """Generate one piece of on-brand copy.

    The system prompt is assembled from the brand's instructions (or the
    generic fallback), any learned pattern knowledge for the requested
    market/platform, the brand's worked examples and the text of its uploaded
    assets. Regeneration feedback, when given, is placed ahead of the request
    so it takes priority.
    """
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unknown content type: {content_type}")
    options = options or GenerationOptions()
    logger.info(f"Generating {content_type} for {brand.id}")

    type_instructions, fallback_used = resolve_type_instructions(
        content_type, instructions, options.email_type, recorder=recorder
    )

    knowledge, pattern_source = None, None
    if patterns is not None and options.market and options.platform:
        knowledge, pattern_source = await patterns.resolve(brand.id, options.market, options.platform, content_type)
        if knowledge:
            logger.info(
                f"Loaded {pattern_source} patterns built from "
                f"{knowledge.performance_summary.total_examples} examples"
            )

    ctx = PromptContext(
        content_type=content_type,
        instructions=instructions,
        type_instructions=type_instructions,
        options=options,
        patterns=knowledge,
        asset_context=asset_context,
    )
    system_prompt = build_system_prompt(ctx).build()
    user_prompt = build_user_prompt(
        content_type, user_request, instructions, options, regeneration_feedback
    ).build()

    llm = llm or get_text_llm(content_type)
    parsed = await call_json_model(llm, system_prompt, user_prompt)

    metadata = ContentMetadata(
        campaign_stage=options.campaign_stage,
        fallback_instructions_used=fallback_used,
        pattern_source=pattern_source,
    )

    if content_type == "ad-copy":
        raw_variations = parsed.get("variations") or []
        if not isinstance(raw_variations, list) or not raw_variations:
            raise UpstreamFormatError("No variations returned from the language model")
        try:
            variations = [AdCopyVariation.model_validate(v) for v in raw_variations]
        except ValidationError as e:
            raise UpstreamFormatError(f"Malformed ad variations from the language model: {e}") from e
        logger.info(f"Generated {len(variations)} ad variations")
        bodies = " ".join(v.body for v in variations)
        metadata.word_count = _word_count(bodies)
        metadata.character_count = len(bodies)
        return GeneratedContent(type=content_type, variations=variations, metadata=metadata)

    content = json.dumps(parsed, indent=2, ensure_ascii=False)
    metadata.word_count = _word_count(content)
    metadata.character_count = len(content)
    metadata.email_type = options.email_type if content_type == "email" else None
    return GeneratedContent(type=content_type, content=content, metadata=metadata)


async def refine_creative_text(brand: Brand, original_text: str, refinement: str, llm=None) -> str:
    """Rewrite copy to follow the marketer's feedback while keeping the brand voice."""
    prompt = REFINE_COPY_PROMPT.format(
        brand_name=brand.name,
        tone_of_voice=brand.guidelines.tone_of_voice,
        original_text=original_text,
        refinement=refinement,
    )
    llm = llm or get_refine_llm()
    response = await llm.ainvoke([HumanMessage(content=prompt)])
    return message_text(response).strip()
