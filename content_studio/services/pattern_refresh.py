import asyncio
import logging
import operator
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph
from langgraph.types import Send

from content_studio.models.domain import BrandInstructions
from content_studio.services.instructions import InstructionsRepository
from content_studio.services.patterns import (
    GroupKey,
    PatternKnowledgeRepository,
    example_id,
    group_examples_by_key,
)

logger = logging.getLogger(__name__)


class RefreshMapState(TypedDict):
    brand_id: str
    groups: List[Dict[str, Any]]
    results: Annotated[List[Dict[str, Any]], operator.add]


def changed_groups(
    before: Optional[BrandInstructions], after: BrandInstructions
) -> dict[GroupKey, list]:
    """Groups in `after` whose example set differs from `before`."""
    old = group_examples_by_key(before) if before else {}
    new = group_examples_by_key(after)
    changed = {}
    for key, examples in new.items():
        old_ids = [example_id(ex) for ex in old.get(key, [])]
        if old_ids != [example_id(ex) for ex in examples]:
            changed[key] = examples
    return changed


def _build_refresh_graph():
    workflow = StateGraph(RefreshMapState)

    async def refresh_group_node(state: Dict[str, Any], config: RunnableConfig):
        configurable = config.get("configurable", {})
        repo: PatternKnowledgeRepository = configurable["patterns"]
        semaphore: asyncio.Semaphore = configurable["semaphore"]
        market, platform, content_type = state["market"], state["platform"], state["content_type"]
        key = f"{market}/{platform}/{content_type}"
        async with semaphore:
            try:
                record = await repo.update_pattern_knowledge(
                    state["brand_id"], market, platform, content_type, state["examples"]
                )
            except Exception as e:
                logger.error(f"Pattern refresh failed for {state['brand_id']} {key}: {e}")
                return {"results": [{"key": key, "status": "error", "error": str(e)}]}
        return {"results": [{
            "key": key,
            "status": "ok",
            "patternId": record.id,
            "totalExamples": record.performance_summary.total_examples,
        }]}

    workflow.add_node("RefreshGroup", refresh_group_node)

    def send_to_groups(state: RefreshMapState):
        return [
            Send("RefreshGroup", {"brand_id": state["brand_id"], **group})
            for group in state.get("groups", [])
        ]

    workflow.add_conditional_edges(START, send_to_groups)
    workflow.add_edge("RefreshGroup", END)
    return workflow.compile()


async def refresh_patterns(
    brand_id: str,
    groups: dict[GroupKey, list],
    patterns: PatternKnowledgeRepository,
    concurrency: int = 3,
) -> list[dict]:
    """Re-extract every group concurrently; one group failing leaves the rest untouched."""
    if not groups:
        return []

    graph = _build_refresh_graph()
    initial_state = {
        "brand_id": brand_id,
        "groups": [
            {"market": market, "platform": platform, "content_type": content_type, "examples": examples}
            for (market, platform, content_type), examples in groups.items()
        ],
        "results": [],
    }
    config = {"configurable": {"patterns": patterns, "semaphore": asyncio.Semaphore(max(1, concurrency))}}
    final_state = await graph.ainvoke(initial_state, config=config)
    results = final_state.get("results", [])
    failed = [r for r in results if r["status"] != "ok"]
    logger.info(f"Refreshed {len(results) - len(failed)}/{len(results)} pattern groups for {brand_id}")
    return results


async def save_instructions_and_refresh(
    brand_id: str,
    instructions: BrandInstructions,
    editor: str,
    instructions_repo: InstructionsRepository,
    patterns: PatternKnowledgeRepository,
    concurrency: int = 3,
) -> tuple[BrandInstructions, list[dict]]:
    """Persist instructions, then rebuild pattern knowledge for every group whose examples changed."""
    before = await instructions_repo.get(brand_id)
    saved = await instructions_repo.save(brand_id, instructions, editor)
    groups = changed_groups(before, saved)
    results = await refresh_patterns(brand_id, groups, patterns, concurrency=concurrency)
    return saved, results
