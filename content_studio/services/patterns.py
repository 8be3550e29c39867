"""Pattern knowledge: what makes a brand's worked examples convert, per
(market, platform, content type), extracted by an LLM and stored for prompts."""

import hashlib
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from langchain_core.messages import HumanMessage

from content_studio.core.llm_factory import get_pattern_llm
from content_studio.core.telemetry import (
    GENERAL_PATTERNS_USED,
    PATTERN_EXTRACTION_FAILED,
    PATTERN_LOOKUP_FAILED,
    EventRecorder,
    events,
)
from content_studio.models.domain import (
    PATTERN_CATEGORIES,
    BrandInstructions,
    CampaignExample,
    PatternKnowledgeBase,
    PatternSet,
    PerformanceSummary,
    utc_now,
)
from content_studio.prompts import PATTERN_EXAMPLE_TEMPLATE, PATTERN_EXTRACTION_PROMPT
from content_studio.tools.document_store import DocumentStore
from content_studio.utils.llm import message_text, parse_json_response

logger = logging.getLogger(__name__)

COLLECTION = "pattern_knowledge"

EXTRACTION_FAILED_INSIGHT = "Pattern extraction failed. Please add patterns manually."
GENERAL_PATTERN_ID = "general"
GENERAL_MARKET = "EMEA"
GENERAL_LEARNINGS = "General patterns merged from all markets"
GENERAL_INSIGHTS = (
    "These patterns are aggregated from multiple markets. "
    "Use as baseline when specific market data is unavailable."
)


@dataclass
class ExtractionResult:
    patterns: PatternSet
    insights: str
    failed: bool = False


GroupKey = tuple[str, str, str]


def pattern_key(market: str, platform: str, content_type: str) -> str:
    """Deterministic id for a (market, platform, content type) group."""
    return re.sub(r"\s+", "-", f"{market}-{platform}-{content_type}".lower())


def _storage_id(brand_id: str, pattern_id: str) -> str:
    return f"{brand_id}:{pattern_id}"


def example_id(example: CampaignExample) -> str:
    """Stable id for an example, derived from its content."""
    raw = "|".join([
        example.stage,
        example.headline or "",
        example.body,
        example.cta,
        example.what_works or "",
        example.notes or "",
    ])
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:12]


def _format_example(index: int, example: CampaignExample) -> str:
    return PATTERN_EXAMPLE_TEMPLATE.format(
        index=index,
        headline=example.headline or "N/A",
        copy=example.body,
        cta=example.cta,
        stage=example.stage,
        what_works=f"\nWhat Works: {example.what_works}" if example.what_works else "",
        notes=f"\nNotes: {example.notes}" if example.notes else "",
    )


def build_extraction_prompt(
    examples: list[CampaignExample], market: str, platform: str, content_type: str
) -> str:
    formatted = "\n\n".join(_format_example(i, ex) for i, ex in enumerate(examples, start=1))
    return PATTERN_EXTRACTION_PROMPT.format(
        content_type=content_type,
        market=market,
        platform=platform,
        examples=formatted,
    )


def failed_extraction() -> ExtractionResult:
    return ExtractionResult(patterns=PatternSet(), insights=EXTRACTION_FAILED_INSIGHT, failed=True)


async def extract_patterns_from_examples(
    examples: list[CampaignExample],
    market: str,
    platform: str,
    content_type: str,
    llm=None,
    recorder: EventRecorder = events,
) -> ExtractionResult:
    """Ask the pattern model what makes these examples work.

    Never raises: any failure yields empty categories and a fixed insight.
    """
    prompt = build_extraction_prompt(examples, market, platform, content_type)
    try:
        llm = llm or get_pattern_llm()
        response = await llm.ainvoke([HumanMessage(content=prompt)])
        parsed = parse_json_response(message_text(response))
        patterns = PatternSet.model_validate(parsed["patterns"])
        insights = parsed.get("insights") or ""
        if not isinstance(insights, str):
            raise ValueError(f"insights is not a string: {type(insights).__name__}")
    except Exception as e:
        logger.error(f"Error extracting patterns for {market}/{platform}/{content_type}: {e}")
        recorder.increment(PATTERN_EXTRACTION_FAILED, market=market, platform=platform, content_type=content_type)
        return failed_extraction()

    logger.info(f"Extracted patterns from {len(examples)} examples for {market}/{platform}/{content_type}")
    return ExtractionResult(patterns=patterns, insights=insights)


def iter_examples(instructions: BrandInstructions) -> Iterable[tuple[str, CampaignExample]]:
    """Yield (content type, example) for every example across all type blocks."""
    blocks = (
        ("ad-copy", instructions.ad_copy_instructions),
        ("blog", instructions.blog_instructions),
        ("landing-page", instructions.landing_page_instructions),
        ("email", instructions.email_instructions.invitation),
        ("email", instructions.email_instructions.nurturing_drip),
        ("email", instructions.email_instructions.email_blast),
    )
    for content_type, block in blocks:
        for example in block.examples:
            yield example.type or content_type, example


def group_examples_by_key(instructions: BrandInstructions) -> dict[GroupKey, list[CampaignExample]]:
    """Group examples by (market, platform, content type).

    Examples without a market or platform carry no group and are skipped.
    """
    groups: dict[GroupKey, list[CampaignExample]] = defaultdict(list)
    for content_type, example in iter_examples(instructions):
        if not example.market or not example.platform:
            continue
        groups[(example.market, example.platform, content_type)].append(example)
    return dict(groups)


def _union(lists: Iterable[list[str]]) -> list[str]:
    seen: dict[str, None] = {}
    for items in lists:
        for item in items:
            seen.setdefault(item, None)
    return list(seen)


class PatternKnowledgeRepository:
    def __init__(self, store: DocumentStore, llm=None, recorder: EventRecorder = events):
        self.store = store
        self.llm = llm
        self.recorder = recorder

    @staticmethod
    def _from_document(doc: dict) -> PatternKnowledgeBase:
        doc = dict(doc)
        doc["id"] = doc.get("patternId") or doc["id"]
        doc.pop("patternId", None)
        return PatternKnowledgeBase.model_validate(doc)

    async def _find(self, brand_id: str, pattern_id: str) -> Optional[dict]:
        return await self.store.get(COLLECTION, _storage_id(brand_id, pattern_id))

    async def get(self, brand_id: str, market: str, platform: str, content_type: str) -> Optional[PatternKnowledgeBase]:
        """Exact-key lookup. Store errors and malformed records read as "no patterns"."""
        try:
            doc = await self._find(brand_id, pattern_key(market, platform, content_type))
            if not doc or doc.get("deleted"):
                return None
            return self._from_document(doc)
        except Exception as e:
            logger.error(f"Error fetching pattern knowledge for {brand_id} {market}/{platform}/{content_type}: {e}")
            self.recorder.increment(PATTERN_LOOKUP_FAILED, brand=brand_id, content_type=content_type)
            return None

    async def list_for_brand(self, brand_id: str) -> list[PatternKnowledgeBase]:
        docs = await self.store.query(COLLECTION, where={"brandId": brand_id}, order_by="patternId")
        return [self._from_document(d) for d in docs if not d.get("deleted")]

    async def update_pattern_knowledge(
        self,
        brand_id: str,
        market: str,
        platform: str,
        content_type: str,
        examples: list[CampaignExample],
        manual_learnings: str = "",
    ) -> PatternKnowledgeBase:
        """Re-extract patterns for the whole group and upsert its record."""
        pattern_id = pattern_key(market, platform, content_type)
        existing = await self._find(brand_id, pattern_id)

        extraction = await extract_patterns_from_examples(
            examples, market, platform, content_type, llm=self.llm, recorder=self.recorder
        )

        now = utc_now()
        record = PatternKnowledgeBase(
            id=pattern_id,
            brand_id=brand_id,
            market=market,
            platform=platform,
            content_type=content_type,
            patterns=extraction.patterns,
            auto_extracted_insights=extraction.insights,
            manual_learnings=manual_learnings or (existing or {}).get("manualLearnings") or "",
            example_ids=[example_id(ex) for ex in examples],
            performance_summary=PerformanceSummary(total_examples=len(examples)),
            created_at=(existing or {}).get("createdAt") or now,
            last_updated=now,
        )
        doc = record.to_document()
        doc["patternId"] = doc.pop("id")
        await self.store.set(COLLECTION, _storage_id(brand_id, pattern_id), doc, merge=True)
        logger.info(f"Updated pattern knowledge {brand_id}/{pattern_id} from {len(examples)} examples")
        return record

    async def update_manual_learnings(self, brand_id: str, pattern_id: str, manual_learnings: str) -> PatternKnowledgeBase:
        existing = await self._find(brand_id, pattern_id)
        if not existing or existing.get("deleted"):
            raise KeyError(f"Pattern knowledge not found: {pattern_id}")
        doc = await self.store.set(
            COLLECTION,
            _storage_id(brand_id, pattern_id),
            {"manualLearnings": manual_learnings, "lastUpdated": utc_now().isoformat()},
            merge=True,
        )
        return self._from_document(doc)

    async def delete(self, brand_id: str, pattern_id: str) -> bool:
        """Soft delete: the record stays but is hidden from reads."""
        existing = await self._find(brand_id, pattern_id)
        if not existing:
            return False
        await self.store.set(
            COLLECTION,
            _storage_id(brand_id, pattern_id),
            {"deleted": True, "lastUpdated": utc_now().isoformat()},
            merge=True,
        )
        return True

    async def get_general_patterns(
        self, brand_id: str, platform: str, content_type: str
    ) -> Optional[PatternKnowledgeBase]:
        """Merge every market's patterns for this platform and content type."""
        try:
            docs = await self.store.query(
                COLLECTION,
                where={"brandId": brand_id, "platform": platform, "contentType": content_type},
                order_by="patternId",
            )
            entries = [self._from_document(d) for d in docs if not d.get("deleted")]
        except Exception as e:
            logger.error(f"Error fetching general patterns for {brand_id} {platform}/{content_type}: {e}")
            self.recorder.increment(PATTERN_LOOKUP_FAILED, brand=brand_id, content_type=content_type)
            return None
        if not entries:
            return None

        merged = PatternSet(**{
            category: _union(getattr(entry.patterns, category) for entry in entries)
            for category in PATTERN_CATEGORIES
        })
        self.recorder.increment(GENERAL_PATTERNS_USED, brand=brand_id, platform=platform, content_type=content_type)
        return PatternKnowledgeBase(
            id=GENERAL_PATTERN_ID,
            brand_id=brand_id,
            market=GENERAL_MARKET,
            platform=platform,
            content_type=content_type,
            patterns=merged,
            auto_extracted_insights=GENERAL_INSIGHTS,
            manual_learnings=GENERAL_LEARNINGS,
            example_ids=_union(entry.example_ids for entry in entries),
            performance_summary=PerformanceSummary(
                total_examples=sum(e.performance_summary.total_examples for e in entries)
            ),
            created_at=min((e.created_at for e in entries if e.created_at), default=None),
            last_updated=max((e.last_updated for e in entries if e.last_updated), default=None),
        )

    async def resolve(
        self, brand_id: str, market: Optional[str], platform: Optional[str], content_type: str
    ) -> tuple[Optional[PatternKnowledgeBase], Optional[str]]:
        """Market-specific patterns if present, else the cross-market merge.

        Returns (patterns, source) where source is "market", "general" or None.
        """
        if not market or not platform:
            return None, None
        specific = await self.get(brand_id, market, platform, content_type)
        if specific:
            return specific, "market"
        logger.info(f"No {market} patterns for {brand_id}/{platform}/{content_type}, trying general patterns")
        general = await self.get_general_patterns(brand_id, platform, content_type)
        if general:
            return general, "general"
        return None, None
