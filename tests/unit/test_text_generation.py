from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from content_studio.core.brands import get_brand
from content_studio.core.defaults import FALLBACK_MARKER
from content_studio.core.errors import UpstreamFormatError, UpstreamTransportError
from content_studio.core.telemetry import FALLBACK_INSTRUCTIONS_USED, EventRecorder
from content_studio.models.domain import CampaignExample, GenerationOptions
from content_studio.services.instructions import default_instructions
from content_studio.services.patterns import PatternKnowledgeRepository
from content_studio.services.text_generation import (
    call_json_model,
    generate_text_content,
    refine_creative_text,
    resolve_type_instructions,
)
from content_studio.tools.document_store import InMemoryDocumentStore

BRAND = get_brand("cga")

AD_REPLY = {
    "variations": [
        {"id": "1", "version": "short", "persona": "Parent", "angle": "logical",
         "headline": "Learn anywhere", "body": "Top teachers online for your teen", "cta": "Learn more"},
        {"id": "2", "version": "long", "persona": "Student", "angle": "emotional",
         "headline": "Your campus, everywhere", "body": "Join classmates across the world", "cta": "Apply now"},
    ]
}


def _sent_prompts(llm):
    messages = llm.ainvoke.await_args.args[0]
    return messages[0].content, messages[1].content


def test_resolve_uses_fallback_for_unconfigured_type():
    recorder = EventRecorder()
    instr = default_instructions("cga")
    instr.email_instructions.invitation.examples.append(
        CampaignExample(stage="tofu", body="You're invited", cta="RSVP")
    )
    block, used = resolve_type_instructions("email", instr, "invitation", recorder=recorder)
    assert used is True
    assert block.system_prompt.startswith(FALLBACK_MARKER)
    assert block.examples[0].body == "You're invited"
    assert recorder.count(FALLBACK_INSTRUCTIONS_USED) == 1


def test_resolve_keeps_configured_block(configured_instructions):
    recorder = EventRecorder()
    block, used = resolve_type_instructions("blog", configured_instructions(), recorder=recorder)
    assert used is False
    assert block.system_prompt == "You write CGA blog posts."
    assert recorder.count(FALLBACK_INSTRUCTIONS_USED) == 0


@pytest.mark.asyncio
async def test_fallback_marker_reaches_the_model(make_llm):
    llm = make_llm(AD_REPLY)
    recorder = EventRecorder()
    result = await generate_text_content(
        "ad-copy", "Open day ads", BRAND, default_instructions("cga"), llm=llm, recorder=recorder
    )
    system_prompt, _ = _sent_prompts(llm)
    assert FALLBACK_MARKER in system_prompt
    assert result.metadata.fallback_instructions_used is True
    assert recorder.count(FALLBACK_INSTRUCTIONS_USED) == 1


@pytest.mark.asyncio
async def test_ad_copy_variations(configured_instructions, make_llm):
    llm = make_llm(AD_REPLY)
    result = await generate_text_content(
        "ad-copy", "Open day ads", BRAND, configured_instructions(),
        GenerationOptions(campaign_stage="tofu"), llm=llm,
    )
    assert result.type == "ad-copy"
    assert [v.headline for v in result.variations] == ["Learn anywhere", "Your campus, everywhere"]
    assert result.content is None
    assert result.metadata.word_count == 11
    assert result.metadata.campaign_stage == "tofu"
    assert result.metadata.fallback_instructions_used is False
    system_prompt, _ = _sent_prompts(llm)
    assert FALLBACK_MARKER not in system_prompt


@pytest.mark.asyncio
async def test_long_form_content_is_serialized(configured_instructions, make_llm):
    reply = {"subject": "Open day", "previewText": "See you there", "body": "Dear parents, join us."}
    result = await generate_text_content(
        "email", "Invite parents", BRAND, configured_instructions(),
        GenerationOptions(email_type="invitation"), llm=make_llm(reply),
    )
    assert result.variations is None
    assert '"subject": "Open day"' in result.content
    assert result.metadata.email_type == "invitation"
    assert result.metadata.word_count > 0


@pytest.mark.asyncio
async def test_empty_variations_rejected(configured_instructions, make_llm):
    with pytest.raises(UpstreamFormatError, match="No variations returned"):
        await generate_text_content(
            "ad-copy", "Ads", BRAND, configured_instructions(), llm=make_llm({"variations": []})
        )


@pytest.mark.asyncio
async def test_invalid_json_rejected(configured_instructions, make_llm):
    with pytest.raises(UpstreamFormatError, match="Invalid JSON response from the language model"):
        await generate_text_content("blog", "Study tips", BRAND, configured_instructions(), llm=make_llm("oops"))


@pytest.mark.asyncio
async def test_json_wrapped_in_prose_rejected(configured_instructions, make_llm):
    llm = make_llm('Sure, here is your post:\n{"title": "x", "body": "y"}\nHope it helps!')
    with pytest.raises(UpstreamFormatError, match="Invalid JSON response from the language model"):
        await generate_text_content("blog", "Study tips", BRAND, configured_instructions(), llm=llm)


@pytest.mark.asyncio
async def test_unknown_content_type(configured_instructions, make_llm):
    with pytest.raises(ValueError):
        await generate_text_content("podcast", "x", BRAND, configured_instructions(), llm=make_llm({}))


@pytest.mark.asyncio
async def test_regeneration_feedback_comes_first(configured_instructions, make_llm):
    llm = make_llm({"title": "t"})
    await generate_text_content(
        "blog", "Study tips", BRAND, configured_instructions(),
        regeneration_feedback="Shorter paragraphs", llm=llm,
    )
    _, user_prompt = _sent_prompts(llm)
    assert user_prompt.startswith("REGENERATION FEEDBACK (HIGHEST PRIORITY)")
    assert user_prompt.index("Shorter paragraphs") < user_prompt.index("USER REQUEST:")


@pytest.mark.asyncio
async def test_market_patterns_then_general(configured_instructions, make_llm):
    extraction = {
        "patterns": {"headlineStyles": ["contrarian"], "structurePatterns": [], "toneCharacteristics": [],
                     "ctaStrategies": [], "conversionTechniques": [], "socialProofApproaches": []},
        "insights": "Contrarian hooks outperform in ANZ.",
    }
    patterns = PatternKnowledgeRepository(InMemoryDocumentStore(), llm=make_llm(extraction))
    await patterns.update_pattern_knowledge("cga", "ANZ", "META", "landing-page", [])

    llm = make_llm({"hero": {"headline": "h"}})
    result = await generate_text_content(
        "landing-page", "Open day page", BRAND, configured_instructions(),
        GenerationOptions(market="ANZ", platform="META"), patterns=patterns, llm=llm,
    )
    system_prompt, _ = _sent_prompts(llm)
    assert "Contrarian hooks outperform in ANZ." in system_prompt
    assert result.metadata.pattern_source == "market"

    llm = make_llm({"hero": {"headline": "h"}})
    result = await generate_text_content(
        "landing-page", "Open day page", BRAND, configured_instructions(),
        GenerationOptions(market="Japan", platform="META"), patterns=patterns, llm=llm,
    )
    system_prompt, _ = _sent_prompts(llm)
    assert "- contrarian" in system_prompt
    assert "aggregated from multiple markets" in system_prompt
    assert result.metadata.pattern_source == "general"


@pytest.mark.asyncio
async def test_pattern_store_outage_does_not_block_generation(configured_instructions, make_llm):
    store = MagicMock()
    store.get = AsyncMock(side_effect=RuntimeError("store down"))
    store.query = AsyncMock(side_effect=RuntimeError("store down"))
    patterns = PatternKnowledgeRepository(store, recorder=EventRecorder())

    llm = make_llm({"title": "Study tips", "body": "Start early."})
    result = await generate_text_content(
        "blog", "Study tips", BRAND, configured_instructions(),
        GenerationOptions(market="ANZ", platform="META"), patterns=patterns, llm=llm,
    )
    llm.ainvoke.assert_awaited_once()
    assert result.metadata.pattern_source is None
    assert '"title": "Study tips"' in result.content


@pytest.mark.asyncio
async def test_call_json_model_wraps_http_errors():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request, text="rate limited")
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=openai.APIStatusError("rate limited", response=response, body=None))

    with pytest.raises(UpstreamTransportError) as exc_info:
        await call_json_model(llm, "system", "user")
    assert exc_info.value.status_code == 429
    assert str(exc_info.value) == "OpenAI API error: 429 - rate limited"


@pytest.mark.asyncio
async def test_refine_creative_text(make_llm):
    llm = make_llm("  Learn from the best, wherever you are.  ")
    refined = await refine_creative_text(BRAND, "Learn here.", "Make it global", llm=llm)
    assert refined == "Learn from the best, wherever you are."
    prompt = llm.ainvoke.await_args.args[0][0].content
    assert "Make it global" in prompt
    assert BRAND.guidelines.tone_of_voice in prompt
