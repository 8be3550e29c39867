from unittest.mock import AsyncMock, MagicMock

import pytest

from content_studio.services.instructions import InstructionsRepository
from content_studio.services.pattern_refresh import changed_groups, refresh_patterns, save_instructions_and_refresh
from content_studio.services.patterns import PatternKnowledgeRepository
from content_studio.tools.document_store import InMemoryDocumentStore

EXTRACTION = {
    "patterns": {
        "headlineStyles": ["question-based"],
        "structurePatterns": [],
        "toneCharacteristics": [],
        "ctaStrategies": [],
        "conversionTechniques": [],
        "socialProofApproaches": [],
    },
    "insights": "Questions open conversations.",
}


def _examples(*markets):
    return [
        {"stage": "tofu", "market": m, "platform": "META", "headline": f"{m} open day", "copy": "Visit us", "cta": "Book"}
        for m in markets
    ]


def test_changed_groups_from_nothing(configured_instructions):
    after = configured_instructions(adCopyInstructions={"examples": _examples("ANZ", "ASIA")})
    assert set(changed_groups(None, after)) == {("ANZ", "META", "ad-copy"), ("ASIA", "META", "ad-copy")}


def test_changed_groups_only_reports_edits(configured_instructions):
    before = configured_instructions(adCopyInstructions={"examples": _examples("ANZ", "ASIA")})
    assert changed_groups(before, before) == {}

    edited = _examples("ANZ", "ASIA")
    edited[1]["copy"] = "Visit our new campus"
    after = configured_instructions(adCopyInstructions={"examples": edited})
    assert set(changed_groups(before, after)) == {("ASIA", "META", "ad-copy")}


def test_changed_groups_sees_annotation_edits(configured_instructions):
    before = configured_instructions(adCopyInstructions={"examples": _examples("ANZ", "ASIA")})

    annotated = _examples("ANZ", "ASIA")
    annotated[0]["whatWorks"] = "Names the suburb in the headline"
    after = configured_instructions(adCopyInstructions={"examples": annotated})
    assert set(changed_groups(before, after)) == {("ANZ", "META", "ad-copy")}

    noted = _examples("ANZ", "ASIA")
    noted[1]["notes"] = "Ran during exam season"
    after = configured_instructions(adCopyInstructions={"examples": noted})
    assert set(changed_groups(before, after)) == {("ASIA", "META", "ad-copy")}


@pytest.mark.asyncio
async def test_refresh_isolates_group_failures():
    async def _update(brand_id, market, platform, content_type, examples):
        if market == "ASIA":
            raise RuntimeError("store unavailable")
        record = MagicMock()
        record.id = f"{market.lower()}-{platform.lower()}-{content_type}"
        record.performance_summary.total_examples = len(examples)
        return record

    repo = MagicMock()
    repo.update_pattern_knowledge = AsyncMock(side_effect=_update)
    groups = {
        ("ANZ", "META", "ad-copy"): ["ex1", "ex2"],
        ("ASIA", "META", "ad-copy"): ["ex3"],
        ("EMEA", "META", "ad-copy"): ["ex4"],
    }

    results = await refresh_patterns("cga", groups, repo, concurrency=2)

    by_key = {r["key"]: r for r in results}
    assert len(results) == 3
    assert by_key["ANZ/META/ad-copy"]["status"] == "ok"
    assert by_key["ANZ/META/ad-copy"]["totalExamples"] == 2
    assert by_key["ASIA/META/ad-copy"]["status"] == "error"
    assert "store unavailable" in by_key["ASIA/META/ad-copy"]["error"]
    assert by_key["EMEA/META/ad-copy"]["status"] == "ok"
    assert repo.update_pattern_knowledge.await_count == 3


@pytest.mark.asyncio
async def test_refresh_with_no_groups_is_noop():
    repo = MagicMock()
    repo.update_pattern_knowledge = AsyncMock()
    assert await refresh_patterns("cga", {}, repo) == []
    repo.update_pattern_knowledge.assert_not_awaited()


@pytest.mark.asyncio
async def test_save_and_refresh_rebuilds_changed_groups(configured_instructions, make_llm):
    store = InMemoryDocumentStore()
    instructions_repo = InstructionsRepository(store)
    llm = make_llm(EXTRACTION)
    patterns = PatternKnowledgeRepository(store, llm=llm)

    instr = configured_instructions(adCopyInstructions={"examples": _examples("ANZ", "ASIA")})
    saved, results = await save_instructions_and_refresh("cga", instr, "sam", instructions_repo, patterns)

    assert saved.version == 1
    assert sorted(r["patternId"] for r in results) == ["anz-meta-ad-copy", "asia-meta-ad-copy"]
    kb = await patterns.get("cga", "ANZ", "META", "ad-copy")
    assert kb.patterns.headline_styles == ["question-based"]

    # Saving the same examples again extracts nothing.
    llm.ainvoke.reset_mock()
    saved, results = await save_instructions_and_refresh("cga", saved, "sam", instructions_repo, patterns)
    assert saved.version == 2
    assert results == []
    llm.ainvoke.assert_not_awaited()
