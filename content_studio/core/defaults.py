"""Built-in templates: the blank instructions document, generic fallback
instruction blocks and the asset category rules."""

from dataclasses import dataclass

PLACEHOLDER_PREFIX = "[PLACEHOLDER"
FALLBACK_MARKER = "GENERIC FALLBACK INSTRUCTIONS"


def _placeholder(description: str) -> str:
    return f"[PLACEHOLDER: {description}]"


def _type_block(label: str) -> dict:
    return {
        "systemPrompt": _placeholder(f"{label} system prompt describing the writer's role and goal"),
        "requirements": _placeholder(f"{label} format and length requirements"),
        "dos": [_placeholder(f"Something {label.lower()} should always do")],
        "donts": [_placeholder(f"Something {label.lower()} should never do")],
        "examples": [],
    }


def default_instructions_document(brand_id: str) -> dict:
    """Return a complete instructions document with every field filled."""
    return {
        "brandId": brand_id,
        "brandIntroduction": _placeholder("Two or three sentences introducing the brand and what it offers"),
        "personas": [
            {
                "name": _placeholder("Persona name"),
                "description": _placeholder("Who this persona is"),
                "painPoints": [_placeholder("A problem this persona has")],
                "solution": _placeholder("How the brand solves it"),
            }
        ],
        "coreValues": [_placeholder("Core value")],
        "toneOfVoice": _placeholder("How the brand sounds, e.g. warm, confident, plain-spoken"),
        "keyMessaging": [_placeholder("Key message the brand repeats")],
        "campaignInstructions": {
            "tofu": _placeholder("Top of funnel guidance: awareness CTAs and messaging"),
            "mofu": _placeholder("Middle of funnel guidance: consideration CTAs and messaging"),
            "bofu": _placeholder("Bottom of funnel guidance: conversion CTAs and messaging"),
        },
        "adCopyInstructions": _type_block("Ad copy"),
        "blogInstructions": _type_block("Blog"),
        "landingPageInstructions": _type_block("Landing page"),
        "emailInstructions": {
            "invitation": _type_block("Invitation email"),
            "nurturingDrip": _type_block("Nurturing drip email"),
            "emailBlast": _type_block("Email blast"),
        },
        "referenceMaterials": {"interviews": "", "testimonials": ""},
        "version": 0,
        "lastUpdatedBy": "system",
    }


def is_placeholder(value: str | None) -> bool:
    return not value or not value.strip() or PLACEHOLDER_PREFIX in value


FALLBACK_INSTRUCTIONS = {
    "ad-copy": {
        "systemPrompt": f"""{FALLBACK_MARKER}: AD COPY
You are an experienced performance marketing copywriter. Write paid social ad copy that
leads with the reader's problem, shows the transformation the brand offers and closes
with one clear call to action.""",
        "requirements": "Short versions 50-100 words, long versions 150-200 words. One CTA per variation.",
        "dos": ["Lead with a specific benefit", "Use plain, conversational language", "Vary the opening hook"],
        "donts": ["Use exclamation marks or hashtags", "Invent statistics or testimonials", "Use vague corporate phrases"],
    },
    "blog": {
        "systemPrompt": f"""{FALLBACK_MARKER}: BLOG
You are an SEO content writer. Write an informative, well-structured article that answers
the reader's question and naturally points them to the brand.""",
        "requirements": "H1 headline, meta description, introduction, 3-5 H2 sections, conclusion and CTA.",
        "dos": ["Answer the search intent early", "Use descriptive headings", "Integrate keywords naturally"],
        "donts": ["Keyword-stuff", "Fabricate sources or figures"],
    },
    "landing-page": {
        "systemPrompt": f"""{FALLBACK_MARKER}: LANDING PAGE
You are a conversion copywriter. Write landing page copy that makes the offer obvious in
the hero, backs it with concrete benefits and removes objections before the final CTA.""",
        "requirements": "Hero, value proposition, 3-5 benefits, features, social proof and a final CTA.",
        "dos": ["Keep the hero under 12 words", "Make every benefit specific"],
        "donts": ["Bury the call to action", "Invent testimonials"],
    },
    "email": {
        "systemPrompt": f"""{FALLBACK_MARKER}: EMAIL
You are an email marketer. Write a single email with a subject line that earns the open,
a body that delivers one idea and a clear call to action.""",
        "requirements": "Subject under 60 characters, preview text, structured body, one CTA.",
        "dos": ["Write like a person, not a newsletter", "Keep paragraphs short"],
        "donts": ["Use spammy subject lines", "Include more than one primary CTA"],
    },
}


@dataclass(frozen=True)
class AssetCategoryConfig:
    label: str
    description: str
    accepted_types: tuple[str, ...]
    max_size: int


_MB = 1024 * 1024

ASSET_CATEGORY_CONFIG: dict[str, AssetCategoryConfig] = {
    "brand-guidelines": AssetCategoryConfig(
        label="Brand Guidelines",
        description="Official brand guideline documents and style guides",
        accepted_types=("application/pdf", "text/plain"),
        max_size=20 * _MB,
    ),
    "competitor-ads": AssetCategoryConfig(
        label="Competitor Ads",
        description="Competitor advertising for reference and analysis",
        accepted_types=("image/*", "application/pdf", "video/mp4", "video/quicktime"),
        max_size=20 * _MB,
    ),
    "reference-copy": AssetCategoryConfig(
        label="Reference Copy",
        description="Approved copy, scripts and messaging references",
        accepted_types=("text/plain", "application/pdf", "text/html", "text/markdown"),
        max_size=5 * _MB,
    ),
    "logos": AssetCategoryConfig(
        label="Logos",
        description="Brand logos in approved colourways",
        accepted_types=("image/svg+xml", "image/png", "image/jpeg"),
        max_size=5 * _MB,
    ),
    "other": AssetCategoryConfig(
        label="Other",
        description="Anything else the team wants to keep with the brand",
        accepted_types=("*/*",),
        max_size=15 * _MB,
    ),
}

# Variables usable as {{name}} inside stored prompt templates.
TEMPLATE_VARIABLES = {
    "brand": 'Brand name (e.g., "CGA")',
    "theme": 'Campaign theme (e.g., "Open Day")',
    "location": 'Target location (e.g., "Auckland")',
    "audience": 'Target audience (e.g., "parents of 12-18 year olds")',
    "brandGuidelines": "Extracted text from brand guideline documents",
    "referenceCopy": "Extracted text from reference copy examples",
    "competitorAds": "Descriptions of competitor ad examples",
    "logos": "List of available logo files",
    "tone": "Tone and voice rules",
}
