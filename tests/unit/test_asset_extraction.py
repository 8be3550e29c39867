import base64

import pytest

from content_studio.core.telemetry import ASSET_EXTRACTION_FAILED, EventRecorder
from content_studio.models.domain import AssetMetadata, BrandAsset
from content_studio.services.asset_extraction import (
    AssetTextExtractor,
    build_asset_prompt_text,
    extract_colors,
    extract_logo_rules,
    extract_typography,
    format_assets_summary,
    get_assets_summary,
    get_context_summary,
    load_generation_context,
    parse_guidelines_from_text,
)
from content_studio.services.assets import AssetService, UploadFile
from content_studio.services.instructions import default_instructions
from content_studio.tools.blob_storage import InMemoryBlobStorage
from content_studio.tools.document_store import InMemoryDocumentStore

FILLER = "Use plenty of white space around every element on the page."

GUIDELINE_DOC = (
    "Tone of voice: warm, direct and optimistic. Never sarcastic.\n\n"
    "Target audience: parents of teens aged 13 to 18\n\n"
    "Core values: excellence, flexibility\n\n"
    "Imagery: real students in real homes\n\n"
    "Logo rules: the logo must never be stretched."
)


async def _stored(blobs, name, file_type, data=b"", description=None, category="brand-guidelines"):
    url = await blobs.upload(f"brand-assets/cga/{category}/{name}", data, file_type)
    return BrandAsset(
        id=f"asset_{name}",
        brand_id="cga",
        category=category,
        file_name=name,
        file_type=file_type,
        file_size=len(data),
        file_url=url,
        metadata=AssetMetadata(description=description),
    )


def _asset(name, file_type, size=100):
    return BrandAsset(
        id=f"asset_{name}", brand_id="cga", category="other", file_name=name,
        file_type=file_type, file_size=size, file_url=f"memory://brand-assets/{name}",
    )


def test_colors_are_sorted_by_their_labels():
    text = "\n".join([
        "Primary colour: #8B1538", FILLER,
        "Secondary colour: #1E3A8A", FILLER,
        "Accent colour: #d4af37", FILLER,
        "Neutral: #333333, repeated #8b1538",
    ])
    palette = extract_colors(text)
    assert palette.primary == ["#8B1538"]
    assert palette.secondary == ["#1E3A8A"]
    assert palette.accent == ["#D4AF37"]
    assert palette.all_colors == ["#8B1538", "#1E3A8A", "#D4AF37", "#333333"]
    assert palette.to_document()["all"] == palette.all_colors


def test_unlabelled_colors_fill_roles_in_order():
    palette = extract_colors("#111 #222222 #333 #444444 #555 #666666")
    assert palette.primary == ["#111", "#222222", "#333", "#444444"]
    assert palette.secondary == ["#555", "#666666"]
    assert palette.accent == []


def test_typography():
    typography = extract_typography("Primary font: Montserrat Bold\nBody typeface: Open Sans (regular)\n")
    assert typography.primary == "Montserrat Bold"
    assert typography.secondary == "Open Sans (regular)"
    assert typography.details == "font: Montserrat Bold. typeface: Open Sans (regular)"
    assert extract_typography("Colours only") is None


def test_logo_rules():
    text = "The logo must always sit on a white background. Keep it clear."
    assert extract_logo_rules(text) == "logo must always sit on a white background."
    assert extract_logo_rules("No marks here.") is None


def test_parse_guidelines_from_text():
    parsed = parse_guidelines_from_text(GUIDELINE_DOC)
    assert parsed.guidelines.tone_of_voice == "Tone of voice: warm, direct and optimistic"
    assert parsed.guidelines.target_audience == "Target audience: parents of teens aged 13 to 18"
    assert parsed.guidelines.values == "Core values: excellence, flexibility"
    assert parsed.guidelines.imagery_style == "Imagery: real students in real homes"
    assert parsed.guidelines.key_messaging is None
    assert parsed.guidelines.dos_and_donts is None
    assert parsed.logo_rules == "Logo rules: the logo must never be stretched."
    assert parsed.typography is None
    assert parsed.colors.all_colors == []


@pytest.mark.asyncio
async def test_pdf_is_transcribed_by_the_model(make_llm):
    blobs = InMemoryBlobStorage()
    asset = await _stored(blobs, "guide.pdf", "application/pdf", b"%PDF-1.4 fake")
    llm = make_llm("  Tone of voice: warm  ")

    text = await AssetTextExtractor(blobs, llm=llm).extract_text(asset)

    assert text == "Tone of voice: warm"
    message = llm.ainvoke.await_args.args[0][0]
    assert "guide.pdf" in message.content[0]["text"]
    assert message.content[1]["mime_type"] == "application/pdf"
    assert base64.b64decode(message.content[1]["data"]) == b"%PDF-1.4 fake"


@pytest.mark.asyncio
async def test_text_and_media_assets(make_llm):
    blobs = InMemoryBlobStorage()
    llm = make_llm("unused")
    extractor = AssetTextExtractor(blobs, llm=llm)

    note = await _stored(blobs, "copy.txt", "text/plain", "Café open day, all welcome.".encode())
    photo = await _stored(blobs, "ad.png", "image/png", b"\x89PNG", description="Student on a laptop")
    clip = await _stored(blobs, "ad.mp4", "video/mp4", b"\x00\x00")

    assert await extractor.extract_text(note) == "Café open day, all welcome."
    assert await extractor.extract_text(photo) == "Student on a laptop"
    assert await extractor.extract_text(clip) == ""
    llm.ainvoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_unreadable_asset_reads_as_empty():
    recorder = EventRecorder()
    extractor = AssetTextExtractor(InMemoryBlobStorage(), recorder=recorder)
    missing = _asset("gone.txt", "text/plain")

    assert await extractor.extract_text(missing) == ""
    assert recorder.count(ASSET_EXTRACTION_FAILED) == 1


@pytest.mark.asyncio
async def test_extract_texts_labels_each_file_with_its_own_name():
    blobs = InMemoryBlobStorage()
    assets = [
        await _stored(blobs, "a.txt", "text/plain", b"Headline: Learn anywhere"),
        await _stored(blobs, "b.png", "image/png", b"\x89PNG"),
        await _stored(blobs, "c.txt", "text/plain", b"Body copy"),
    ]
    text = await AssetTextExtractor(blobs).extract_texts(assets)
    assert text == "--- a.txt ---\nHeadline: Learn anywhere\n\n--- c.txt ---\nBody copy"
    assert await AssetTextExtractor(blobs).extract_texts([]) == ""


def test_assets_summary():
    assets = [
        _asset("guide.pdf", "application/pdf", 300),
        _asset("copy.txt", "text/plain", 20),
        _asset("logo.png", "image/png", 50),
        _asset("logo.jpg", "image/jpeg", 50),
        _asset("ad.mp4", "video/mp4", 500),
        _asset("fonts.zip", "application/zip", 80),
    ]
    summary = get_assets_summary(assets)
    assert summary.total == 6
    assert summary.total_size == 1000
    assert summary.by_type == {"pdfs": 1, "documents": 1, "images": 2, "videos": 1, "other": 1}
    assert format_assets_summary(summary) == "1 PDFs, 1 documents, 2 images, 1 videos, 1 other files"
    assert format_assets_summary(get_assets_summary([])) == ""


@pytest.mark.asyncio
async def test_context_summary_counts_assets_by_category():
    service = AssetService(InMemoryDocumentStore(), InMemoryBlobStorage(), recorder=EventRecorder())
    await service.upload_asset("cga", "brand-guidelines", UploadFile("guide.txt", b"Tone of voice: warm", "text/plain"))
    await service.upload_asset("cga", "reference-copy", UploadFile("copy.txt", b"Learn anywhere", "text/plain"))
    await service.upload_asset("cga", "logos", UploadFile("logo.png", b"\x89PNG", "image/png"))
    await service.upload_asset("cga", "logos", UploadFile("logo-white.png", b"\x89PNG", "image/png"))

    ctx = await load_generation_context(service, "cga", default_instructions("cga"))
    summary = get_context_summary(ctx)

    assert summary.has_instructions is False
    assert summary.has_guidelines is True
    assert summary.has_reference_copy is True
    assert summary.has_competitor_ads is False
    assert summary.has_logos is True
    assert summary.total_assets == 4
    assert summary.message == "Using 1 brand guideline, 1 reference copy example, 2 logos"


@pytest.mark.asyncio
async def test_context_summary_without_assets():
    service = AssetService(InMemoryDocumentStore(), InMemoryBlobStorage(), recorder=EventRecorder())
    instructions = default_instructions("cga")

    ctx = await load_generation_context(service, "cga", instructions)
    assert get_context_summary(ctx).message == "No additional context"

    ctx = await load_generation_context(service, "cga", instructions.model_copy(update={"version": 3}))
    summary = get_context_summary(ctx)
    assert summary.has_instructions is True
    assert summary.message == "Using custom instructions"


@pytest.mark.asyncio
async def test_asset_prompt_text(make_llm):
    blobs = InMemoryBlobStorage()
    service = AssetService(InMemoryDocumentStore(), blobs, recorder=EventRecorder())
    extractor = AssetTextExtractor(blobs, llm=make_llm("unused"))

    ctx = await load_generation_context(service, "cga", default_instructions("cga"))
    assert await build_asset_prompt_text(ctx, extractor) is None

    await service.upload_asset("cga", "brand-guidelines", UploadFile("guide.txt", b"Tone of voice: warm", "text/plain"))
    await service.upload_asset("cga", "logos", UploadFile("logo.png", b"\x89PNG", "image/png"))
    ctx = await load_generation_context(service, "cga", default_instructions("cga"))
    text = await build_asset_prompt_text(ctx, extractor)

    assert text.startswith("BRAND ASSET LIBRARY")
    assert "Brand Guidelines:\n--- guide.txt ---\nTone of voice: warm" in text
    assert "Logos:\nlogo.png" in text
    assert "Reference Copy:" not in text
