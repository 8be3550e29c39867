"""Reads uploaded brand assets back as text for the copy generator.

Guideline documents are mined with regular expressions for colours,
typography, logo rules and the guideline fields a brand profile carries.
PDFs are transcribed by a Gemini model; text files are read directly;
images and other media contribute their metadata description.
"""

import asyncio
import base64
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from langchain_core.messages import HumanMessage

from content_studio.core.llm_factory import get_extraction_llm
from content_studio.core.telemetry import ASSET_EXTRACTION_FAILED, EventRecorder, events
from content_studio.models.domain import (
    BrandAsset,
    BrandInstructions,
    ColorPalette,
    GenerationContextSummary,
    ParsedGuidelineFields,
    ParsedGuidelines,
    Typography,
)
from content_studio.prompts import BRAND_ASSET_BLOCK, BRAND_ASSETS_SECTION, DOCUMENT_TEXT_EXTRACTION_PROMPT
from content_studio.services.assets import AssetService
from content_studio.tools.blob_storage import BlobStorage
from content_studio.utils.llm import message_text

logger = logging.getLogger(__name__)

# --- Guideline parsing ---

HEX_COLOR = re.compile(r"#(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})\b")
COLOR_CONTEXT_CHARS = 50
COLOR_HINTS = (
    ("primary", ("primary", "main", "burgundy", "crimson")),
    ("secondary", ("secondary", "blue")),
    ("accent", ("accent", "highlight", "gold", "orange")),
)
# Slices used for a role when no colour was labelled with it.
COLOR_FALLBACK_SLICES = {"primary": (0, 4), "secondary": (4, 8), "accent": (8, 12)}

FONT = re.compile(
    r"(?:fonts?|typeface|typography)(?:[ \t]*:[ \t]*|[ \t]+)([A-Za-z \t]+(?:\([^)]+\))?)",
    re.IGNORECASE,
)
LOGO_RULE = re.compile(
    r"logo[\s\S]{0,500}?(?:should|must|do not|avoid|rules|guidelines)[\s\S]{0,500}?(?:\.|\Z)",
    re.IGNORECASE,
)

_SECTION_END = r"(?=\n\n|\.\s[A-Z]|\Z)"
GUIDELINE_FIELDS = {
    "tone_of_voice": re.compile(r"tone[\s\S]{0,50}?voice[\s\S]{0,300}?" + _SECTION_END, re.IGNORECASE),
    "key_messaging": re.compile(r"(?:key\s)?messaging[\s\S]{0,300}?" + _SECTION_END, re.IGNORECASE),
    "target_audience": re.compile(r"(?:target\s)?audience[\s\S]{0,300}?" + _SECTION_END, re.IGNORECASE),
    "values": re.compile(r"(?:core\s)?values[\s\S]{0,300}?" + _SECTION_END, re.IGNORECASE),
    "imagery_style": re.compile(r"imagery[\s\S]{0,300}?" + _SECTION_END, re.IGNORECASE),
    "dos_and_donts": re.compile(
        r"(?:do[\s\S]{0,50}?don't|dos[\s\S]{0,50}?don'ts)[\s\S]{0,500}?(?=\n\n|\Z)", re.IGNORECASE
    ),
}


def extract_colors(text: str) -> ColorPalette:
    """Collect hex colour codes and sort them into roles by the words just before each one."""
    unique = list(dict.fromkeys(match.upper() for match in HEX_COLOR.findall(text)))
    lower = text.lower()

    roles: dict[str, list[str]] = {role: [] for role, _ in COLOR_HINTS}
    for color in unique:
        index = lower.find(color.lower())
        before = lower[max(0, index - COLOR_CONTEXT_CHARS):index]
        for role, hints in COLOR_HINTS:
            if any(hint in before for hint in hints):
                roles[role].append(color)
                break

    for role, (start, end) in COLOR_FALLBACK_SLICES.items():
        if not roles[role]:
            roles[role] = unique[start:end]
    return ColorPalette(**roles, all_colors=unique)


def extract_typography(text: str) -> Optional[Typography]:
    matches = list(FONT.finditer(text))
    if not matches:
        return None
    fonts = [m.group(1).strip() for m in matches]
    return Typography(
        primary=fonts[0],
        secondary=fonts[1] if len(fonts) > 1 else "",
        details=". ".join(m.group(0) for m in matches),
    )


def extract_logo_rules(text: str) -> Optional[str]:
    matches = LOGO_RULE.findall(text)
    if not matches:
        return None
    return " ".join(matches).strip()


def parse_guidelines_from_text(text: str) -> ParsedGuidelines:
    fields = {}
    for name, pattern in GUIDELINE_FIELDS.items():
        match = pattern.search(text)
        if match:
            fields[name] = match.group(0).strip()
    return ParsedGuidelines(
        guidelines=ParsedGuidelineFields(**fields),
        colors=extract_colors(text),
        typography=extract_typography(text),
        logo_rules=extract_logo_rules(text),
    )


# --- Asset text ---

TRANSCRIBED_TYPES = ("application/pdf",)


class AssetTextExtractor:
    def __init__(self, blobs: BlobStorage, llm=None, recorder: EventRecorder = events):
        self.blobs = blobs
        self.llm = llm
        self.recorder = recorder

    async def _transcribe(self, asset: BrandAsset) -> str:
        data = await self.blobs.download(asset.file_url)
        message = HumanMessage(content=[
            {"type": "text", "text": DOCUMENT_TEXT_EXTRACTION_PROMPT.format(file_name=asset.file_name)},
            {
                "type": "file",
                "source_type": "base64",
                "mime_type": asset.file_type,
                "data": base64.b64encode(data).decode("ascii"),
            },
        ])
        llm = self.llm or get_extraction_llm()
        response = await llm.ainvoke([message])
        return message_text(response).strip()

    async def extract_text(self, asset: BrandAsset) -> str:
        """Return the readable text of one asset, or "" when there is none or reading failed."""
        try:
            if asset.file_type in TRANSCRIBED_TYPES:
                return await self._transcribe(asset)
            if asset.file_type.startswith("text/"):
                data = await self.blobs.download(asset.file_url)
                return data.decode("utf-8", errors="replace")
            return asset.metadata.description or ""
        except Exception as e:
            logger.error(f"Error extracting text from asset {asset.id}: {e}")
            self.recorder.increment(ASSET_EXTRACTION_FAILED, brand=asset.brand_id, file_type=asset.file_type)
            return ""

    async def extract_texts(self, assets: list[BrandAsset]) -> str:
        """Extract every asset in parallel and join the non-empty ones under their file names."""
        if not assets:
            return ""
        texts = await asyncio.gather(*(self.extract_text(a) for a in assets))
        return "\n\n".join(
            f"--- {asset.file_name} ---\n{text}"
            for asset, text in zip(assets, texts)
            if text.strip()
        )


# --- Summaries ---


@dataclass
class AssetsSummary:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    total_size: int = 0


def file_kind(file_type: str) -> str:
    if file_type.startswith("image/"):
        return "images"
    if file_type == "application/pdf":
        return "pdfs"
    if file_type.startswith("text/"):
        return "documents"
    if file_type.startswith("video/"):
        return "videos"
    return "other"


def get_assets_summary(assets: list[BrandAsset]) -> AssetsSummary:
    summary = AssetsSummary(total=len(assets))
    for asset in assets:
        kind = file_kind(asset.file_type)
        summary.by_type[kind] = summary.by_type.get(kind, 0) + 1
        summary.total_size += asset.file_size
    return summary


SUMMARY_LABELS = (
    ("pdfs", "PDFs"),
    ("documents", "documents"),
    ("images", "images"),
    ("videos", "videos"),
    ("other", "other files"),
)


def format_assets_summary(summary: AssetsSummary) -> str:
    return ", ".join(
        f"{summary.by_type[kind]} {label}" for kind, label in SUMMARY_LABELS if summary.by_type.get(kind)
    )


# --- Generation context ---


@dataclass
class GenerationContext:
    instructions: BrandInstructions
    guidelines: list[BrandAsset] = field(default_factory=list)
    reference_copy: list[BrandAsset] = field(default_factory=list)
    competitor_ads: list[BrandAsset] = field(default_factory=list)
    logos: list[BrandAsset] = field(default_factory=list)

    @property
    def total_assets(self) -> int:
        return len(self.guidelines) + len(self.reference_copy) + len(self.competitor_ads) + len(self.logos)


async def load_generation_context(
    assets: AssetService, brand_id: str, instructions: BrandInstructions
) -> GenerationContext:
    guidelines, competitor_ads, reference_copy, logos = await asyncio.gather(
        assets.get_assets_by_category(brand_id, "brand-guidelines"),
        assets.get_assets_by_category(brand_id, "competitor-ads"),
        assets.get_assets_by_category(brand_id, "reference-copy"),
        assets.get_assets_by_category(brand_id, "logos"),
    )
    return GenerationContext(
        instructions=instructions,
        guidelines=guidelines,
        reference_copy=reference_copy,
        competitor_ads=competitor_ads,
        logos=logos,
    )


def _counted(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def get_context_summary(ctx: GenerationContext) -> GenerationContextSummary:
    """Describe, for the UI, which instructions and assets a generation will draw on."""
    has_instructions = ctx.instructions.version > 0
    parts = []
    if has_instructions:
        parts.append("custom instructions")
    if ctx.guidelines:
        parts.append(_counted(len(ctx.guidelines), "brand guideline"))
    if ctx.reference_copy:
        parts.append(_counted(len(ctx.reference_copy), "reference copy example"))
    if ctx.competitor_ads:
        parts.append(_counted(len(ctx.competitor_ads), "competitor ad"))
    if ctx.logos:
        parts.append(_counted(len(ctx.logos), "logo"))

    return GenerationContextSummary(
        has_instructions=has_instructions,
        has_guidelines=bool(ctx.guidelines),
        has_reference_copy=bool(ctx.reference_copy),
        has_competitor_ads=bool(ctx.competitor_ads),
        has_logos=bool(ctx.logos),
        total_assets=ctx.total_assets,
        message=f"Using {', '.join(parts)}" if parts else "No additional context",
    )


async def build_asset_prompt_text(ctx: GenerationContext, extractor: AssetTextExtractor) -> Optional[str]:
    """Render the brand's guideline, reference and competitor assets as one prompt section."""
    guidelines, reference_copy, competitor_ads = await asyncio.gather(
        extractor.extract_texts(ctx.guidelines),
        extractor.extract_texts(ctx.reference_copy),
        extractor.extract_texts(ctx.competitor_ads),
    )
    blocks = [
        BRAND_ASSET_BLOCK.format(label=label, text=text)
        for label, text in (
            ("Brand Guidelines", guidelines),
            ("Reference Copy", reference_copy),
            ("Competitor Ads", competitor_ads),
            ("Logos", ", ".join(logo.file_name for logo in ctx.logos)),
        )
        if text
    ]
    if not blocks:
        return None
    return BRAND_ASSETS_SECTION.format(asset_blocks="\n\n".join(blocks))
