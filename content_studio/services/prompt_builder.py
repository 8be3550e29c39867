"""Assembles system and user prompts for text generation from named sections.

Each section is a small function returning text or None; the builder keeps
their order and drops the empty ones.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from content_studio.models.domain import (
    BrandInstructions,
    GenerationOptions,
    PatternKnowledgeBase,
    TypeSpecificInstructions,
)
from content_studio.prompts import (
    AD_COPY_OUTPUT_SPEC,
    BLOG_OUTPUT_SPEC,
    BRAND_CONTEXT_SECTION,
    DYNAMIC_PATTERNS_SECTION,
    EMAIL_OUTPUT_SPEC,
    INTERVIEWS_SECTION,
    LANDING_PAGE_OUTPUT_SPEC,
    META_INSTRUCTIONS_SECTION,
    PERSONA_TEMPLATE,
    REGENERATION_FEEDBACK_BLOCK,
)

logger = logging.getLogger(__name__)


@dataclass
class PromptBuilder:
    separator: str = "\n\n"
    sections: list[tuple[str, str]] = field(default_factory=list)

    def add(self, name: str, text: Optional[str]) -> "PromptBuilder":
        if text and text.strip():
            self.sections.append((name, text.strip()))
        return self

    def names(self) -> list[str]:
        return [name for name, _ in self.sections]

    def build(self) -> str:
        return self.separator.join(text for _, text in self.sections)


@dataclass
class PromptContext:
    content_type: str
    instructions: BrandInstructions
    type_instructions: TypeSpecificInstructions
    options: GenerationOptions = field(default_factory=GenerationOptions)
    patterns: Optional[PatternKnowledgeBase] = None
    asset_context: Optional[str] = None


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def type_system_prompt_section(ctx: PromptContext) -> Optional[str]:
    return ctx.type_instructions.system_prompt


def brand_context_section(ctx: PromptContext) -> Optional[str]:
    instr = ctx.instructions
    personas = "\n\n".join(
        PERSONA_TEMPLATE.format(
            name=p.name,
            description=p.description,
            pain_points=", ".join(p.pain_points),
            solution=p.solution,
        )
        for p in instr.personas
    )
    return BRAND_CONTEXT_SECTION.format(
        introduction=instr.brand_introduction,
        core_values=", ".join(instr.core_values),
        tone_of_voice=instr.tone_of_voice,
        key_messaging="\n".join(f"{i}. {msg}" for i, msg in enumerate(instr.key_messaging, start=1)),
        personas=personas,
    )


def requirements_section(ctx: PromptContext) -> Optional[str]:
    if not ctx.type_instructions.requirements:
        return None
    return f"REQUIREMENTS:\n{ctx.type_instructions.requirements}"


def dos_donts_section(ctx: PromptContext) -> Optional[str]:
    parts = []
    if ctx.type_instructions.dos:
        parts.append(f"DO's:\n{_bullets(ctx.type_instructions.dos)}")
    if ctx.type_instructions.donts:
        parts.append(f"DON'Ts:\n{_bullets(ctx.type_instructions.donts)}")
    return "\n\n".join(parts) or None


def dynamic_patterns_section(ctx: PromptContext) -> Optional[str]:
    kb = ctx.patterns
    if kb is None:
        return None
    p = kb.patterns
    return DYNAMIC_PATTERNS_SECTION.format(
        market=kb.market,
        platform=kb.platform,
        content_type=ctx.content_type,
        headline_styles=_bullets(p.headline_styles),
        structure_patterns=_bullets(p.structure_patterns),
        tone_characteristics=_bullets(p.tone_characteristics),
        cta_strategies=_bullets(p.cta_strategies),
        conversion_techniques=_bullets(p.conversion_techniques),
        social_proof_approaches=_bullets(p.social_proof_approaches),
        insights=kb.auto_extracted_insights,
        manual_learnings=f"\n\nMARKETER INSIGHTS:\n{kb.manual_learnings}" if kb.manual_learnings else "",
    )


def reference_examples_section(ctx: PromptContext) -> Optional[str]:
    examples = ctx.type_instructions.examples
    market = ctx.options.market
    filter_by_market = ctx.content_type == "landing-page" and market
    if filter_by_market:
        examples = [ex for ex in examples if not ex.market or ex.market == market]
    if not examples:
        return None

    blocks = []
    for i, ex in enumerate(examples, start=1):
        label = ex.stage.upper() + (f" - {ex.market} Market" if ex.market else "")
        lines = [f"Example {i} ({label}):"]
        if ex.headline:
            lines.append(f"Headline: {ex.headline}")
        lines.append(f"Body: {ex.body}")
        lines.append(f"CTA: {ex.cta}")
        if ex.notes:
            lines.append(f"Notes: {ex.notes}")
        blocks.append("\n".join(lines))

    heading = f"REFERENCE EXAMPLES ({market} Market):" if filter_by_market else "REFERENCE EXAMPLES:"
    return heading + "\n\n" + "\n\n".join(blocks)


def interviews_section(ctx: PromptContext) -> Optional[str]:
    interviews = ctx.instructions.reference_materials.interviews
    if not interviews:
        return None
    return INTERVIEWS_SECTION.format(interviews=interviews)


def brand_assets_section(ctx: PromptContext) -> Optional[str]:
    return ctx.asset_context


def meta_instructions_section(ctx: PromptContext) -> Optional[str]:
    return META_INSTRUCTIONS_SECTION


SYSTEM_PROMPT_SECTIONS: list[tuple[str, Callable[[PromptContext], Optional[str]]]] = [
    ("type_system_prompt", type_system_prompt_section),
    ("brand_context", brand_context_section),
    ("requirements", requirements_section),
    ("dos_donts", dos_donts_section),
    ("dynamic_patterns", dynamic_patterns_section),
    ("reference_examples", reference_examples_section),
    ("interviews", interviews_section),
    ("brand_assets", brand_assets_section),
    ("meta_instructions", meta_instructions_section),
]


def build_system_prompt(ctx: PromptContext) -> PromptBuilder:
    builder = PromptBuilder()
    for name, section in SYSTEM_PROMPT_SECTIONS:
        builder.add(name, section(ctx))
    logger.debug(f"System prompt sections: {builder.names()}")
    return builder


def _length_note(options: GenerationOptions, label: str) -> str:
    if not options.length_spec:
        return ""
    return f"\n- {label}: {options.length_spec.value} {options.length_spec.unit}"


def output_spec(content_type: str, options: GenerationOptions) -> str:
    if content_type == "ad-copy":
        variant_note = ""
        if options.ad_variant:
            variant_note = f"\n- Prioritise the {options.ad_variant} version; it is the one the marketer needs first"
        return AD_COPY_OUTPUT_SPEC.format(variant_note=variant_note)
    if content_type == "blog":
        return BLOG_OUTPUT_SPEC.format(length_note=_length_note(options, "Target length"))
    if content_type == "landing-page":
        return LANDING_PAGE_OUTPUT_SPEC.format(length_note=_length_note(options, "Target total length"))
    if content_type == "email":
        return EMAIL_OUTPUT_SPEC.format(length_note=_length_note(options, "Target body length"))
    raise ValueError(f"Unknown content type: {content_type}")


def build_user_prompt(
    content_type: str,
    user_request: str,
    instructions: BrandInstructions,
    options: GenerationOptions,
    regeneration_feedback: Optional[str] = None,
) -> PromptBuilder:
    builder = PromptBuilder()
    if regeneration_feedback and regeneration_feedback.strip():
        builder.add("regeneration_feedback", REGENERATION_FEEDBACK_BLOCK.format(feedback=regeneration_feedback.strip()))
    builder.add("user_request", f"USER REQUEST:\n{user_request}")
    if options.campaign_stage:
        stage_guidance = getattr(instructions.campaign_instructions, options.campaign_stage)
        builder.add("campaign_stage", f"CAMPAIGN STAGE: {options.campaign_stage.upper()}\n{stage_guidance}")
    if options.length_spec:
        builder.add("length", f"LENGTH REQUIREMENT: {options.length_spec.value} {options.length_spec.unit}")
    builder.add("output_spec", output_spec(content_type, options))
    return builder
