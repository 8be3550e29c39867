"""Ad copy generation that infers the ad format from the request wording and
checks each returned variation against that format's limits."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from pydantic import ValidationError

from content_studio.core.errors import UpstreamFormatError
from content_studio.core.llm_factory import get_text_llm
from content_studio.core.telemetry import AD_VARIATION_INVALID, EventRecorder, events
from content_studio.models.domain import AdVariation, Brand
from content_studio.prompts import (
    AD_COPY_SINGLE_FORMAT,
    AD_COPY_SYSTEM_PROMPT,
    AD_COPY_VARIATIONS_FORMAT,
    NO_INSPIRATION_FALLBACK,
)
from content_studio.services.text_generation import call_json_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Limit:
    min: int
    max: int
    unit: str = "words"


@dataclass(frozen=True)
class ContentSpecs:
    headline_max: int
    headline_unit: Literal["chars", "words"]
    primary_text: Limit
    cta: Limit
    tone: str
    forbidden: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContentConfig:
    type: str
    format: Literal["variations", "single"]
    count: int
    specs: Optional[ContentSpecs] = None
    # Free-form specs for single-piece formats.
    details: dict = field(default_factory=dict)

    def specs_for_prompt(self) -> dict[str, Any]:
        if self.specs is None:
            return self.details
        s = self.specs
        return {
            "headline": {"max": s.headline_max, "unit": s.headline_unit},
            "primaryText": {"min": s.primary_text.min, "max": s.primary_text.max, "unit": s.primary_text.unit},
            "cta": {"min": s.cta.min, "max": s.cta.max, "unit": s.cta.unit},
            "tone": s.tone,
            "forbidden": list(s.forbidden),
        }


FACEBOOK_AD = ContentConfig(
    type="facebook_ad",
    format="variations",
    count=5,
    specs=ContentSpecs(
        headline_max=40,
        headline_unit="chars",
        primary_text=Limit(90, 160),
        cta=Limit(3, 5),
        tone="warm, conversational, parent-to-parent",
        forbidden=("!", "#", "emoji", "Imagine", "What if", "Picture this", "Envision"),
    ),
)

INSTAGRAM_AD = ContentConfig(
    type="instagram_ad",
    format="variations",
    count=5,
    specs=ContentSpecs(
        headline_max=30,
        headline_unit="chars",
        primary_text=Limit(50, 100),
        cta=Limit(2, 4),
        tone="casual, visual-focused, aspirational",
        forbidden=("!",),
    ),
)

BANNER_AD = ContentConfig(
    type="banner_ad",
    format="variations",
    count=5,
    specs=ContentSpecs(
        headline_max=10,
        headline_unit="words",
        primary_text=Limit(15, 30),
        cta=Limit(2, 3),
        tone="ultra-concise, punchy",
    ),
)

PROSPECTUS = ContentConfig(
    type="prospectus",
    format="single",
    count=1,
    details={
        "length": {"min": 500, "max": 1000, "unit": "words"},
        "tone": "formal, informative, comprehensive",
        "structure": ["introduction", "key_benefits", "program_details", "admission_process", "conclusion"],
    },
)


def detect_content_type(prompt: str) -> ContentConfig:
    """Pick the ad format implied by the request; Facebook when nothing more specific matches."""
    text = prompt.lower()
    if "instagram" in text:
        return INSTAGRAM_AD
    if "banner" in text or "display" in text:
        return BANNER_AD
    if "prospectus" in text or "brochure" in text:
        return PROSPECTUS
    return FACEBOOK_AD


@dataclass
class VariationValidation:
    is_valid: bool
    errors: list[str]


def _words(text: str) -> int:
    return len(text.split())


def validate_variation(variation: AdVariation, specs: ContentSpecs) -> VariationValidation:
    errors: list[str] = []

    if specs.headline_unit == "words":
        headline_length = _words(variation.headline)
    else:
        headline_length = len(variation.headline)
    text_words = _words(variation.primary_text)
    cta_words = _words(variation.cta)

    if headline_length > specs.headline_max:
        errors.append(f"Headline too long: {headline_length} {specs.headline_unit} (max {specs.headline_max})")
    if headline_length == 0:
        errors.append("Headline is missing")

    if text_words < specs.primary_text.min:
        errors.append(f"Primary text too short: {text_words} words (min {specs.primary_text.min})")
    if text_words > specs.primary_text.max:
        errors.append(f"Primary text too long: {text_words} words (max {specs.primary_text.max})")

    if cta_words < specs.cta.min or cta_words > specs.cta.max:
        errors.append(f"CTA word count invalid: {cta_words} words (should be {specs.cta.min}-{specs.cta.max})")

    if "!" in specs.forbidden and any("!" in s for s in (variation.headline, variation.primary_text, variation.cta)):
        errors.append("Contains forbidden exclamation marks")
    if "#" in specs.forbidden and any("#" in s for s in (variation.headline, variation.primary_text)):
        errors.append("Contains forbidden hashtags")

    return VariationValidation(is_valid=not errors, errors=errors)


def build_ad_copy_prompt(brand: Brand, inspiration_examples: str, config: ContentConfig) -> str:
    g = brand.guidelines
    if config.format == "variations":
        s = config.specs
        output_format = AD_COPY_VARIATIONS_FORMAT.format(
            count=config.count,
            headline_max=s.headline_max,
            headline_unit=s.headline_unit,
            text_min=s.primary_text.min,
            text_max=s.primary_text.max,
            text_unit=s.primary_text.unit,
            cta_min=s.cta.min,
            cta_max=s.cta.max,
            cta_unit=s.cta.unit,
        )
        forbidden = s.forbidden
        tone = s.tone
    else:
        output_format = AD_COPY_SINGLE_FORMAT
        forbidden = ()
        tone = config.details.get("tone", "")

    if forbidden:
        forbidden_rule = f"FORBIDDEN PHRASES/CHARACTERS: {', '.join(forbidden)} - do not use these at all"
    else:
        forbidden_rule = "Follow the brand's Dos and Don'ts exactly"

    return AD_COPY_SYSTEM_PROMPT.format(
        format_label=config.type.replace("_", " "),
        brand_name=brand.name,
        values=g.values,
        tone_of_voice=g.tone_of_voice,
        key_messaging=g.key_messaging,
        target_audience=g.target_audience,
        imagery_style=f"\nImagery Style: {g.imagery_style}" if g.imagery_style else "",
        dos_and_donts=f"\nDos and Don'ts: {g.dos_and_donts}" if g.dos_and_donts else "",
        palette=g.palette or "Not specified",
        inspiration=inspiration_examples or NO_INSPIRATION_FALLBACK,
        format=config.format,
        specs=json.dumps(config.specs_for_prompt(), indent=2),
        output_format=output_format,
        forbidden_rule=forbidden_rule,
        tone=tone,
        audience=g.target_audience,
    )


@dataclass
class AdCopyResult:
    config: ContentConfig
    variations: list[AdVariation] = field(default_factory=list)
    validations: list[VariationValidation] = field(default_factory=list)
    content: Optional[dict] = None


async def generate_ad_copy(
    prompt: str,
    brand: Brand,
    inspiration_examples: str = "",
    llm=None,
    recorder: EventRecorder = events,
) -> AdCopyResult:
    """Generate ad variations for `prompt`.

    Variations that break the format's limits are logged and counted but
    always returned; the marketer decides what to keep.
    """
    config = detect_content_type(prompt)
    logger.info(f"Detected ad format {config.type} ({config.format}, count {config.count}) for {brand.id}")

    system_prompt = build_ad_copy_prompt(brand, inspiration_examples, config)
    llm = llm or get_text_llm("ad-copy")
    parsed = await call_json_model(llm, system_prompt, prompt)

    if config.format == "single":
        content = parsed.get("content")
        if not isinstance(content, dict):
            raise UpstreamFormatError("No content returned from the language model")
        return AdCopyResult(config=config, content=content)

    raw_variations = parsed.get("variations") or []
    if not isinstance(raw_variations, list) or not raw_variations:
        raise UpstreamFormatError("No variations returned from the language model")
    try:
        variations = [AdVariation.model_validate(v) for v in raw_variations]
    except ValidationError as e:
        raise UpstreamFormatError(f"Malformed ad variations from the language model: {e}") from e

    logger.info(f"Generated {len(variations)} variation(s)")
    validations = []
    for index, variation in enumerate(variations, start=1):
        validation = validate_variation(variation, config.specs)
        validations.append(validation)
        if not validation.is_valid:
            logger.warning(f"Variation {index} failed validation: {', '.join(validation.errors)}")
            recorder.increment(AD_VARIATION_INVALID, brand=brand.id, format=config.type)

    return AdCopyResult(config=config, variations=variations, validations=validations)
