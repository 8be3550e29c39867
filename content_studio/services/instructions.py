import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from content_studio.core.defaults import default_instructions_document, is_placeholder
from content_studio.core.errors import InstructionsValidationError
from content_studio.models.domain import BrandInstructions, utc_now
from content_studio.tools.document_store import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "brand_instructions"

# (attribute path, warning label) for every type-specific block.
TYPE_BLOCKS = (
    (("ad_copy_instructions",), "Ad copy"),
    (("blog_instructions",), "Blog"),
    (("landing_page_instructions",), "Landing page"),
    (("email_instructions", "invitation"), "Email invitation"),
    (("email_instructions", "nurturing_drip"), "Email nurturing drip"),
    (("email_instructions", "email_blast"), "Email blast"),
)


def deep_merge(base: dict, override: dict) -> dict:
    """Overlay `override` on `base`; nested dicts merge, None never overwrites."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def default_instructions(brand_id: str) -> BrandInstructions:
    return BrandInstructions.model_validate(default_instructions_document(brand_id))


def _block(instructions: BrandInstructions, path: tuple[str, ...]):
    value: Any = instructions
    for attr in path:
        value = getattr(value, attr)
    return value


def validate_instructions(instructions: BrandInstructions) -> tuple[list[str], list[str]]:
    """Return (errors, warnings). Missing type blocks only warn; a generic fallback covers them."""
    errors: list[str] = []
    warnings: list[str] = []

    if not instructions.brand_introduction.strip():
        errors.append("Brand introduction is required")
    if not instructions.personas:
        errors.append("At least one persona is required")
    if not instructions.tone_of_voice.strip():
        errors.append("Tone of voice is required")

    for path, label in TYPE_BLOCKS:
        if is_placeholder(_block(instructions, path).system_prompt):
            warnings.append(f"{label} instructions not configured - generic fallback will be used")

    return errors, warnings


@dataclass
class MissingInstruction:
    field: str
    label: str
    description: str


# content type / email type -> (block path, field stem, label, description, examples description)
_TYPE_CHECKS = {
    ("ad-copy", None): (
        ("ad_copy_instructions",), "adCopy", "Ad Copy",
        "Brand-specific guidelines, examples, dos/donts for ad copywriting",
        "Real examples of high-performing ads to use as templates",
    ),
    ("blog", None): (
        ("blog_instructions",), "blog", "Blog Post",
        "Brand-specific guidelines, examples, dos/donts for blog writing",
        "Real examples of successful blog posts to use as templates",
    ),
    ("landing-page", None): (
        ("landing_page_instructions",), "landingPage", "Landing Page",
        "Brand-specific guidelines, examples, dos/donts for landing page copy",
        "Real examples of high-converting landing pages to use as templates",
    ),
    ("email", "invitation"): (
        ("email_instructions", "invitation"), "emailInvitation", "Invitation Email",
        "Brand-specific guidelines and examples for event invitation emails",
        "Real examples of successful invitation emails",
    ),
    ("email", "nurturing-drip"): (
        ("email_instructions", "nurturing_drip"), "emailNurturing", "Nurturing Email",
        "Brand-specific guidelines and examples for nurturing drip sequences",
        "Real examples of successful nurturing emails",
    ),
    ("email", "email-blast"): (
        ("email_instructions", "email_blast"), "emailBlast", "Email Blast",
        "Brand-specific guidelines and examples for announcement emails",
        "Real examples of successful announcement emails",
    ),
}


def check_missing_instructions(
    instructions: BrandInstructions, content_type: str, email_type: Optional[str] = None
) -> list[MissingInstruction]:
    """List what a marketer should fill in before generating `content_type`."""
    missing: list[MissingInstruction] = []

    if is_placeholder(instructions.brand_introduction):
        missing.append(MissingInstruction(
            "brandIntroduction", "Brand Introduction",
            "Overview of your brand, mission, and what makes you unique",
        ))
    if not instructions.personas or is_placeholder(instructions.personas[0].name):
        missing.append(MissingInstruction(
            "personas", "Target Personas",
            "Detailed descriptions of your target audience segments, their pain points, and how you solve them",
        ))
    if is_placeholder(instructions.tone_of_voice):
        missing.append(MissingInstruction(
            "toneOfVoice", "Tone of Voice",
            "How your brand communicates (e.g., professional, conversational, aspirational)",
        ))
    if not instructions.key_messaging or is_placeholder(instructions.key_messaging[0]):
        missing.append(MissingInstruction(
            "keyMessaging", "Key Messaging",
            "Core messages and value propositions you want to communicate",
        ))
    if is_placeholder(instructions.campaign_instructions.tofu):
        missing.append(MissingInstruction(
            "campaignInstructions", "Campaign Stage Instructions",
            "Guidelines for TOFU, MOFU, and BOFU messaging and CTAs",
        ))

    key = (content_type, (email_type or "email-blast") if content_type == "email" else None)
    check = _TYPE_CHECKS.get(key)
    if check:
        path, stem, label, description, examples_description = check
        block = _block(instructions, path)
        if is_placeholder(block.system_prompt):
            missing.append(MissingInstruction(f"{stem}Instructions", f"{label} Instructions", description))
        elif not block.examples:
            missing.append(MissingInstruction(f"{stem}Examples", f"{label} Examples", examples_description))

    return missing


def should_show_warning(missing: list[MissingInstruction]) -> bool:
    return len(missing) > 0


def replace_template_variables(template: str, variables: dict[str, str]) -> str:
    """Substitute `{{name}}` markers; unknown markers are left alone."""

    def _sub(match: re.Match) -> str:
        name = match.group(1).strip()
        if name in variables:
            return variables[name] or ""
        return match.group(0)

    return re.sub(r"\{\{\s*([^{}]+?)\s*\}\}", _sub, template)


class InstructionsRepository:
    """Per-brand instruction documents, always read back as complete records."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _load_raw(self, brand_id: str) -> Optional[dict]:
        return await self.store.get(COLLECTION, brand_id)

    def _hydrate(self, brand_id: str, stored: Optional[dict]) -> BrandInstructions:
        document = default_instructions_document(brand_id)
        if stored:
            stored = {k: v for k, v in stored.items() if k != "id"}
            document = deep_merge(document, stored)
        document["brandId"] = brand_id
        return BrandInstructions.model_validate(document)

    async def get(self, brand_id: str) -> BrandInstructions:
        try:
            stored = await self._load_raw(brand_id)
            return self._hydrate(brand_id, stored)
        except ValidationError as e:
            logger.error(f"Stored instructions for {brand_id} are malformed, using defaults: {e}")
        except Exception as e:
            logger.error(f"Error fetching instructions for {brand_id}: {e}")
        return default_instructions(brand_id)

    async def save(
        self, brand_id: str, instructions: BrandInstructions, editor: str = "admin"
    ) -> BrandInstructions:
        errors, warnings = validate_instructions(instructions)
        if errors:
            raise InstructionsValidationError(errors)
        for warning in warnings:
            logger.warning(f"[{brand_id}] {warning}")

        existing = await self._load_raw(brand_id)
        current_version = (existing.get("version") or 1) if existing else 0

        saved = instructions.model_copy(update={
            "brand_id": brand_id,
            "version": current_version + 1,
            "last_updated_by": editor,
            "last_updated": utc_now(),
        })
        await self.store.set(COLLECTION, brand_id, saved.to_document())
        logger.info(f"Saved instructions for {brand_id} (version {saved.version}) by {editor}")
        return saved

    async def update(self, brand_id: str, updates: dict, editor: str = "admin") -> BrandInstructions:
        """Apply a partial camelCase update over the current (or default) record."""
        current = await self.get(brand_id)
        merged = deep_merge(current.to_document(), updates)
        merged["brandId"] = brand_id
        return await self.save(brand_id, BrandInstructions.model_validate(merged), editor)

    async def reset_to_default(self, brand_id: str, editor: str = "admin") -> BrandInstructions:
        return await self.save(brand_id, default_instructions(brand_id), editor)
