from unittest.mock import AsyncMock, MagicMock

import pytest

from content_studio.core.telemetry import (
    GENERAL_PATTERNS_USED,
    PATTERN_EXTRACTION_FAILED,
    PATTERN_LOOKUP_FAILED,
    EventRecorder,
)
from content_studio.models.domain import CampaignExample
from content_studio.services.patterns import (
    EXTRACTION_FAILED_INSIGHT,
    GENERAL_INSIGHTS,
    GENERAL_LEARNINGS,
    PatternKnowledgeRepository,
    build_extraction_prompt,
    example_id,
    extract_patterns_from_examples,
    group_examples_by_key,
    pattern_key,
)
from content_studio.tools.document_store import InMemoryDocumentStore


def _extraction(headline_styles, insights="Urgency converts in this market."):
    return {
        "patterns": {
            "headlineStyles": headline_styles,
            "structurePatterns": ["problem-agitate-solve"],
            "toneCharacteristics": ["warm"],
            "ctaStrategies": ["single CTA"],
            "conversionTechniques": ["scarcity"],
            "socialProofApproaches": ["testimonials"],
        },
        "insights": insights,
    }


def _example(headline="Open Day", market="ANZ", platform="META", body="Come and see our campus."):
    return CampaignExample(stage="tofu", market=market, platform=platform, headline=headline, body=body, cta="Book now")


def test_pattern_key_is_deterministic():
    assert pattern_key("ANZ", "META", "ad-copy") == "anz-meta-ad-copy"
    assert pattern_key("South East Asia", "GOOGLE", "blog") == "south-east-asia-google-blog"


def test_example_id_tracks_content():
    a = _example()
    assert example_id(a) == example_id(_example())
    assert example_id(a) != example_id(_example(body="Something else"))


def test_build_extraction_prompt_lists_examples():
    examples = [_example(headline="First"), CampaignExample(stage="bofu", body="Apply today", cta="Apply", notes="Top performer")]
    prompt = build_extraction_prompt(examples, "ANZ", "META", "ad-copy")
    assert "from the ANZ market with META traffic source" in prompt
    assert "Example 1:" in prompt and "Example 2:" in prompt
    assert "Headline: N/A" in prompt
    assert "Notes: Top performer" in prompt


def test_group_examples_skips_ungrouped(configured_instructions):
    instr = configured_instructions(adCopyInstructions={"examples": [
        _example().to_document(),
        _example(market="ASIA").to_document(),
        {"stage": "mofu", "copy": "No market here", "cta": "Learn more"},
    ]})
    groups = group_examples_by_key(instr)
    assert set(groups) == {("ANZ", "META", "ad-copy"), ("ASIA", "META", "ad-copy")}


@pytest.mark.asyncio
async def test_extract_patterns_success(make_llm):
    llm = make_llm(_extraction(["question-based"]))
    result = await extract_patterns_from_examples([_example()], "ANZ", "META", "ad-copy", llm=llm)
    assert not result.failed
    assert result.patterns.headline_styles == ["question-based"]
    assert result.insights == "Urgency converts in this market."


@pytest.mark.asyncio
async def test_extract_patterns_unparseable_reply(make_llm):
    recorder = EventRecorder()
    result = await extract_patterns_from_examples(
        [_example()], "ANZ", "META", "ad-copy", llm=make_llm("I could not do that"), recorder=recorder
    )
    assert result.failed
    assert result.insights == EXTRACTION_FAILED_INSIGHT
    assert result.patterns.headline_styles == []
    assert recorder.count(PATTERN_EXTRACTION_FAILED) == 1


@pytest.mark.asyncio
async def test_extract_patterns_model_error():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    recorder = EventRecorder()
    result = await extract_patterns_from_examples([_example()], "ANZ", "META", "ad-copy", llm=llm, recorder=recorder)
    assert result.failed
    assert recorder.count(PATTERN_EXTRACTION_FAILED) == 1


@pytest.mark.asyncio
async def test_extract_patterns_missing_categories(make_llm):
    result = await extract_patterns_from_examples(
        [_example()], "ANZ", "META", "ad-copy", llm=make_llm({"insights": "no patterns key"})
    )
    assert result.failed


@pytest.mark.asyncio
async def test_update_and_get_pattern_knowledge(make_llm):
    repo = PatternKnowledgeRepository(InMemoryDocumentStore(), llm=make_llm(_extraction(["direct value prop"])))
    examples = [_example(), _example(headline="Scholarships")]
    record = await repo.update_pattern_knowledge("cga", "ANZ", "META", "ad-copy", examples)

    assert record.id == "anz-meta-ad-copy"
    assert record.performance_summary.total_examples == 2
    assert record.example_ids == [example_id(ex) for ex in examples]

    loaded = await repo.get("cga", "ANZ", "META", "ad-copy")
    assert loaded.id == "anz-meta-ad-copy"
    assert loaded.patterns.headline_styles == ["direct value prop"]
    assert await repo.get("aia", "ANZ", "META", "ad-copy") is None


@pytest.mark.asyncio
async def test_update_preserves_manual_learnings_and_created_at(make_llm):
    repo = PatternKnowledgeRepository(InMemoryDocumentStore(), llm=make_llm(_extraction(["a"])))
    first = await repo.update_pattern_knowledge("cga", "ANZ", "META", "ad-copy", [_example()])
    await repo.update_manual_learnings("cga", first.id, "Parents respond to fee transparency")

    second = await repo.update_pattern_knowledge("cga", "ANZ", "META", "ad-copy", [_example(), _example(headline="New")])
    assert second.manual_learnings == "Parents respond to fee transparency"
    assert second.created_at == first.created_at
    assert second.performance_summary.total_examples == 2


@pytest.mark.asyncio
async def test_update_manual_learnings_unknown_pattern():
    repo = PatternKnowledgeRepository(InMemoryDocumentStore())
    with pytest.raises(KeyError):
        await repo.update_manual_learnings("cga", "anz-meta-ad-copy", "notes")


@pytest.mark.asyncio
async def test_soft_delete_hides_entry(make_llm):
    repo = PatternKnowledgeRepository(InMemoryDocumentStore(), llm=make_llm(_extraction(["a"])))
    record = await repo.update_pattern_knowledge("cga", "ANZ", "META", "ad-copy", [_example()])

    assert await repo.delete("cga", record.id) is True
    assert await repo.get("cga", "ANZ", "META", "ad-copy") is None
    assert await repo.list_for_brand("cga") == []
    assert await repo.get_general_patterns("cga", "META", "ad-copy") is None
    assert await repo.delete("cga", "missing") is False


@pytest.mark.asyncio
async def test_general_patterns_merge_markets(make_llm):
    store = InMemoryDocumentStore()
    await PatternKnowledgeRepository(store, llm=make_llm(_extraction(["question-based", "urgency"]))).update_pattern_knowledge(
        "cga", "ANZ", "META", "ad-copy", [_example(), _example(headline="Two")]
    )
    await PatternKnowledgeRepository(store, llm=make_llm(_extraction(["urgency", "contrarian"]))).update_pattern_knowledge(
        "cga", "ASIA", "META", "ad-copy", [_example(market="ASIA")]
    )
    # Different platform stays out of the merge.
    await PatternKnowledgeRepository(store, llm=make_llm(_extraction(["search intent"]))).update_pattern_knowledge(
        "cga", "ASIA", "GOOGLE", "ad-copy", [_example(market="ASIA", platform="GOOGLE")]
    )

    recorder = EventRecorder()
    repo = PatternKnowledgeRepository(store, recorder=recorder)
    general = await repo.get_general_patterns("cga", "META", "ad-copy")

    assert general.id == "general"
    assert general.market == "EMEA"
    assert general.manual_learnings == GENERAL_LEARNINGS
    assert general.auto_extracted_insights == GENERAL_INSIGHTS
    assert general.patterns.headline_styles == ["question-based", "urgency", "contrarian"]
    assert general.performance_summary.total_examples == 3
    assert recorder.count(GENERAL_PATTERNS_USED) == 1

    again = await repo.get_general_patterns("cga", "META", "ad-copy")
    assert again.patterns == general.patterns
    assert again.performance_summary == general.performance_summary


@pytest.mark.asyncio
async def test_resolve_prefers_market_then_general(make_llm):
    repo = PatternKnowledgeRepository(InMemoryDocumentStore(), llm=make_llm(_extraction(["a"])))
    await repo.update_pattern_knowledge("cga", "ANZ", "META", "blog", [_example()])

    kb, source = await repo.resolve("cga", "ANZ", "META", "blog")
    assert (kb.id, source) == ("anz-meta-blog", "market")

    kb, source = await repo.resolve("cga", "Japan", "META", "blog")
    assert (kb.id, source) == ("general", "general")

    assert await repo.resolve("cga", "Japan", "GOOGLE", "blog") == (None, None)
    assert await repo.resolve("cga", None, "META", "blog") == (None, None)


@pytest.mark.asyncio
async def test_lookup_errors_read_as_no_patterns():
    store = MagicMock()
    store.get = AsyncMock(side_effect=RuntimeError("store down"))
    store.query = AsyncMock(side_effect=RuntimeError("store down"))
    recorder = EventRecorder()
    repo = PatternKnowledgeRepository(store, recorder=recorder)

    assert await repo.get("cga", "ANZ", "META", "blog") is None
    assert await repo.get_general_patterns("cga", "META", "blog") is None
    assert await repo.resolve("cga", "ANZ", "META", "blog") == (None, None)
    assert recorder.count(PATTERN_LOOKUP_FAILED) == 4


@pytest.mark.asyncio
async def test_malformed_stored_pattern_is_skipped():
    store = InMemoryDocumentStore()
    await store.set("pattern_knowledge", "cga:anz-meta-blog", {
        "patternId": "anz-meta-blog", "brandId": "cga", "market": "ANZ", "platform": "META",
        "contentType": "podcast",
    })
    repo = PatternKnowledgeRepository(store, recorder=EventRecorder())
    assert await repo.resolve("cga", "ANZ", "META", "blog") == (None, None)
