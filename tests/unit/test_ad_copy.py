import logging

import pytest

from content_studio.core.brands import get_brand
from content_studio.core.errors import UpstreamFormatError
from content_studio.core.telemetry import AD_VARIATION_INVALID, EventRecorder
from content_studio.models.domain import AdVariation
from content_studio.prompts import NO_INSPIRATION_FALLBACK
from content_studio.services.ad_copy import (
    BANNER_AD,
    FACEBOOK_AD,
    INSTAGRAM_AD,
    PROSPECTUS,
    build_ad_copy_prompt,
    detect_content_type,
    generate_ad_copy,
    validate_variation,
)

BRAND = get_brand("aia")


def _words(n: int) -> str:
    return " ".join(["word"] * n)


def _valid_facebook(**overrides) -> AdVariation:
    fields = {
        "headline": "Your future starts here",
        "primary_text": _words(100),
        "cta": "Book your tour today",
        "keywords": ["future"],
    }
    fields.update(overrides)
    return AdVariation(**fields)


@pytest.mark.parametrize(
    "prompt, expected",
    [
        ("Facebook ads for our open day", FACEBOOK_AD),
        ("Instagram ad for the new campus", INSTAGRAM_AD),
        ("Display banner for the scholarship", BANNER_AD),
        ("Write a brochure about our programmes", PROSPECTUS),
        ("Something for parents", FACEBOOK_AD),
    ],
)
def test_detect_content_type(prompt, expected):
    assert detect_content_type(prompt) is expected


def test_valid_facebook_variation():
    result = validate_variation(_valid_facebook(), FACEBOOK_AD.specs)
    assert result.is_valid
    assert result.errors == []


def test_exclamation_marks_forbidden():
    result = validate_variation(_valid_facebook(cta="Book your tour now!"), FACEBOOK_AD.specs)
    assert not result.is_valid
    assert "Contains forbidden exclamation marks" in result.errors


def test_length_limits():
    result = validate_variation(
        _valid_facebook(headline="x" * 41, primary_text=_words(20), cta="Go"), FACEBOOK_AD.specs
    )
    assert result.errors == [
        "Headline too long: 41 chars (max 40)",
        "Primary text too short: 20 words (min 90)",
        "CTA word count invalid: 1 words (should be 3-5)",
    ]


def test_banner_headline_counted_in_words():
    variation = AdVariation(headline="x" * 60, primary_text=_words(20), cta="Apply now")
    assert validate_variation(variation, BANNER_AD.specs).is_valid


def test_prompt_includes_specs_and_inspiration():
    prompt = build_ad_copy_prompt(BRAND, "EXAMPLE 1 (Approved on 2026-01-05):", FACEBOOK_AD)
    assert "American Infinite Academy" in prompt
    assert "EXAMPLE 1 (Approved on 2026-01-05):" in prompt
    assert "EXACTLY 5 DIVERSE variations" in prompt
    assert "FORBIDDEN PHRASES/CHARACTERS" in prompt


def test_prompt_without_inspiration():
    prompt = build_ad_copy_prompt(BRAND, "", PROSPECTUS)
    assert NO_INSPIRATION_FALLBACK in prompt
    assert '"content": {' in prompt


@pytest.mark.asyncio
async def test_invalid_variations_are_logged_but_returned(make_llm, caplog):
    caplog.set_level(logging.WARNING, logger="content_studio.services.ad_copy")
    reply = {
        "variations": [
            _valid_facebook().to_document(),
            _valid_facebook(headline="Amazing results!").to_document(),
        ]
    }
    recorder = EventRecorder()
    result = await generate_ad_copy("Facebook ad for open day", BRAND, llm=make_llm(reply), recorder=recorder)

    assert result.config is FACEBOOK_AD
    assert len(result.variations) == 2
    assert [v.is_valid for v in result.validations] == [True, False]
    assert "Variation 2 failed validation: Contains forbidden exclamation marks" in caplog.text
    assert recorder.count(AD_VARIATION_INVALID) == 1


@pytest.mark.asyncio
async def test_single_format_returns_content(make_llm):
    reply = {"content": {"headline": "Why AIA", "body": _words(600), "sections": {}}}
    result = await generate_ad_copy("A prospectus for 2027 intake", BRAND, llm=make_llm(reply))
    assert result.config is PROSPECTUS
    assert result.variations == []
    assert result.content["headline"] == "Why AIA"


@pytest.mark.asyncio
async def test_missing_variations_raise(make_llm):
    with pytest.raises(UpstreamFormatError, match="No variations returned"):
        await generate_ad_copy("Facebook ad", BRAND, llm=make_llm({"variations": []}))


@pytest.mark.asyncio
async def test_missing_single_content_raises(make_llm):
    with pytest.raises(UpstreamFormatError):
        await generate_ad_copy("brochure", BRAND, llm=make_llm({"variations": []}))
