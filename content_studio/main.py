import base64
import logging
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from content_studio.core.brands import get_brand, list_brands
from content_studio.core.container import ServiceContainer, get_container
from content_studio.core.errors import (
    AssetNotFoundError,
    AssetValidationError,
    ContentStudioError,
    InstructionsValidationError,
    UpstreamFormatError,
    UpstreamTransportError,
)
from content_studio.core.telemetry import events
from content_studio.models.domain import AssetMetadata, Brand, BrandInstructions
from content_studio.models.schemas import (
    ApproveContentRequest,
    AssetMetadataUpdate,
    BatchDeleteRequest,
    GenerateAdCopyRequest,
    GenerateImagesRequest,
    GenerateTextRequest,
    ManualLearningsRequest,
    RefineTextRequest,
    RegenerateImagesRequest,
    SaveInstructionsRequest,
    UpdateInstructionsRequest,
    VoiceoverRequest,
)
from content_studio.services.asset_extraction import (
    format_assets_summary,
    get_assets_summary,
    get_context_summary,
    load_generation_context,
    parse_guidelines_from_text,
)
from content_studio.services.assets import UploadFile as AssetFile
from content_studio.services.generation_stream import ad_copy_event_generator, text_generation_event_generator
from content_studio.services.images import build_ad_image_prompt
from content_studio.services.instructions import check_missing_instructions, should_show_warning
from content_studio.services.pattern_refresh import save_instructions_and_refresh
from content_studio.services.text_generation import refine_creative_text
from content_studio.services.voiceover import VoiceoverOptions
from content_studio.tools.mcp_bridge import auth_token_var

# Load environment variables
load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Content Studio API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Adjust in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def bind_auth_token(raw_request: Request) -> str:
    """Extract bearer token from Authorization header and expose it to MCP calls."""
    auth = raw_request.headers.get("authorization", "")
    token = auth[7:] if auth.lower().startswith("bearer ") else ""
    auth_token_var.set(token)
    return token


def _require_brand(brand_id: str) -> Brand:
    brand = get_brand(brand_id)
    if brand is None:
        raise HTTPException(status_code=404, detail=f"Unknown brand: {brand_id}")
    return brand


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, InstructionsValidationError):
        return HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})
    if isinstance(e, AssetNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AssetValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (UpstreamFormatError, UpstreamTransportError)):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/telemetry")
async def telemetry_snapshot():
    return events.snapshot()


# --- Brands & instructions ---

@app.get("/brands")
async def get_brands():
    return [b.model_dump(by_alias=True) for b in list_brands()]


@app.get("/brands/{brand_id}")
async def get_brand_endpoint(brand_id: str):
    return _require_brand(brand_id).model_dump(by_alias=True)


@app.get("/brands/{brand_id}/instructions")
async def get_instructions(
    brand_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    instructions = await container.instructions.get(brand_id)
    return instructions.to_document()


@app.put("/brands/{brand_id}/instructions")
async def save_instructions(
    brand_id: str,
    request: SaveInstructionsRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    try:
        instructions = BrandInstructions.model_validate({**request.instructions, "brandId": brand_id})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))

    try:
        saved, refreshed = await save_instructions_and_refresh(
            brand_id,
            instructions,
            request.editor,
            container.instructions,
            container.patterns,
            concurrency=container.settings.pattern_refresh_concurrency,
        )
    except ContentStudioError as e:
        raise _to_http_error(e)
    return {"instructions": saved.to_document(), "patternRefresh": refreshed}


@app.patch("/brands/{brand_id}/instructions")
async def update_instructions(
    brand_id: str,
    request: UpdateInstructionsRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    try:
        saved = await container.instructions.update(brand_id, request.updates, request.editor)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    except ContentStudioError as e:
        raise _to_http_error(e)
    return saved.to_document()


@app.post("/brands/{brand_id}/instructions/reset")
async def reset_instructions(
    brand_id: str,
    editor: str = "admin",
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    saved = await container.instructions.reset_to_default(brand_id, editor)
    return saved.to_document()


@app.get("/brands/{brand_id}/instructions/missing")
async def get_missing_instructions(
    brand_id: str,
    contentType: str,
    emailType: Optional[str] = None,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    instructions = await container.instructions.get(brand_id)
    missing = check_missing_instructions(instructions, contentType, emailType)
    return {
        "showWarning": should_show_warning(missing),
        "missing": [m.__dict__ for m in missing],
    }


# --- Pattern knowledge ---

@app.get("/brands/{brand_id}/patterns")
async def list_patterns(
    brand_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    return [p.to_document() for p in await container.patterns.list_for_brand(brand_id)]


@app.put("/brands/{brand_id}/patterns/{pattern_id}/learnings")
async def update_pattern_learnings(
    brand_id: str,
    pattern_id: str,
    request: ManualLearningsRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    try:
        updated = await container.patterns.update_manual_learnings(brand_id, pattern_id, request.manualLearnings)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Pattern knowledge not found: {pattern_id}")
    return updated.to_document()


@app.delete("/brands/{brand_id}/patterns/{pattern_id}")
async def delete_pattern(
    brand_id: str,
    pattern_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    if not await container.patterns.delete(brand_id, pattern_id):
        raise HTTPException(status_code=404, detail=f"Pattern knowledge not found: {pattern_id}")
    return {"deleted": pattern_id}


# --- Generation ---

@app.post("/generate-text")
async def generate_text(
    request: GenerateTextRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    return StreamingResponse(
        text_generation_event_generator(
            container=container,
            brand_id=request.brandId,
            content_type=request.contentType,
            prompt=request.prompt,
            options=request.options,
            regeneration_feedback=request.regenerationFeedback,
        ),
        media_type="text/event-stream"
    )


@app.post("/generate-ad-copy")
async def generate_ad_copy_endpoint(
    request: GenerateAdCopyRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    return StreamingResponse(
        ad_copy_event_generator(
            container=container,
            brand_id=request.brandId,
            prompt=request.prompt,
            inspiration_limit=request.inspirationLimit,
        ),
        media_type="text/event-stream"
    )


@app.post("/refine-text")
async def refine_text(request: RefineTextRequest, _token: str = Depends(bind_auth_token)):
    brand = _require_brand(request.brandId)
    try:
        refined = await refine_creative_text(brand, request.originalText, request.refinement)
    except Exception as e:
        logger.error(f"Error refining text for {request.brandId}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to refine text: {e}")
    return {"text": refined}


@app.post("/generate-images")
async def generate_images(
    request: GenerateImagesRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    brand = _require_brand(request.brandId)
    prompt = build_ad_image_prompt(brand, request.adCopy, request.prompt)
    try:
        if request.variations:
            images = await container.images.generate_image_variations(prompt, request.count)
        else:
            images = await container.images.generate_images(prompt, request.count)
    except ContentStudioError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"images": images, "prompt": prompt}


@app.post("/regenerate-images")
async def regenerate_images(
    request: RegenerateImagesRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    brand = _require_brand(request.brandId)
    try:
        images = await container.images.regenerate_images(brand, request.text, request.refinement, request.count)
    except ContentStudioError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"images": images}


@app.post("/generate-voiceover")
async def generate_voiceover(
    request: VoiceoverRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    options = VoiceoverOptions(voice=request.voice, speed=request.speed, target_seconds=request.targetSeconds)
    try:
        result = await container.voiceover.generate_voiceover(request.text, options)
    except ContentStudioError as e:
        raise _to_http_error(e)
    return {
        "audio": base64.b64encode(result.audio).decode("ascii"),
        "mimeType": "audio/wav",
        "srt": result.srt,
        "text": result.optimized_text,
    }


# --- Approved content ---

@app.post("/approved-content")
async def approve_content(
    request: ApproveContentRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    brand = _require_brand(request.brandId)
    if request.generated is not None:
        try:
            saved = await container.approved.save_approved_generated_content(
                brand.id, brand.name, request.userPrompt, request.generated,
                variation_index=request.variationIndex, image_url=request.imageUrl,
            )
        except IndexError as e:
            raise HTTPException(status_code=400, detail=str(e))
    elif request.variation is not None:
        saved = await container.approved.save_approved_content(
            brand.id, brand.name, request.variation, request.userPrompt,
            content_type=request.contentType, image_url=request.imageUrl,
        )
    else:
        raise HTTPException(status_code=400, detail="Either variation or generated content is required")
    return saved.to_document()


@app.get("/brands/{brand_id}/approved-content")
async def list_approved_content(
    brand_id: str,
    limit: int = 10,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    items = await container.approved.get_approved_content_for_brand(brand_id, limit=limit)
    return [item.to_document() for item in items]


# --- Brand assets ---

@app.post("/brands/{brand_id}/assets")
async def upload_assets(
    brand_id: str,
    category: str = Form(...),
    description: Optional[str] = Form(None),
    uploadedBy: str = Form("admin"),
    files: List[UploadFile] = File(...),
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    payload = [
        AssetFile(
            file_name=f.filename or "upload",
            data=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]
    result = await container.assets.batch_upload_assets(
        brand_id, category, payload, metadata=AssetMetadata(description=description), uploaded_by=uploadedBy
    )
    return {
        "uploaded": [a.to_document() for a in result.uploaded],
        "failed": [{"fileName": f.file_name, "error": f.error} for f in result.failed],
    }


@app.get("/brands/{brand_id}/assets")
async def search_assets(
    brand_id: str,
    q: str = "",
    category: Optional[str] = None,
    fileType: Optional[str] = None,
    tag: Optional[List[str]] = Query(None),
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    assets = await container.assets.search_assets(brand_id, q, category=category, file_type=fileType, tags=tag)
    return [a.to_document() for a in assets]


@app.get("/brands/{brand_id}/assets/stats")
async def asset_stats(
    brand_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    stats = await container.assets.get_brand_asset_stats(brand_id)
    return {
        "totalAssets": stats.total_assets,
        "byCategory": stats.by_category,
        "totalSize": stats.total_size,
        "lastUpdated": stats.last_updated.isoformat() if stats.last_updated else None,
    }


@app.get("/brands/{brand_id}/context-summary")
async def context_summary(
    brand_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    _require_brand(brand_id)
    instructions = await container.instructions.get(brand_id)
    context = await load_generation_context(container.assets, brand_id, instructions)
    assets = get_assets_summary(await container.assets.get_assets_by_brand(brand_id))
    return {
        **get_context_summary(context).to_document(),
        "assets": {
            "total": assets.total,
            "byType": assets.by_type,
            "totalSize": assets.total_size,
            "description": format_assets_summary(assets),
        },
    }


@app.post("/assets/{asset_id}/parse-guidelines")
async def parse_asset_guidelines(
    asset_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    asset = await container.assets.get_asset(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Asset not found: {asset_id}")
    text = await container.extractor.extract_text(asset)
    if not text.strip():
        raise HTTPException(status_code=422, detail=f"No text could be read from {asset.file_name}")
    return {"assetId": asset_id, **parse_guidelines_from_text(text).to_document()}


@app.get("/assets/{asset_id}")
async def get_asset(
    asset_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    asset = await container.assets.get_asset(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Asset not found: {asset_id}")
    return asset.to_document()


@app.patch("/assets/{asset_id}")
async def update_asset(
    asset_id: str,
    request: AssetMetadataUpdate,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    try:
        updated = await container.assets.update_asset_metadata(asset_id, request.model_dump(exclude_none=True))
    except ContentStudioError as e:
        raise _to_http_error(e)
    return updated.to_document()


@app.put("/assets/{asset_id}/file")
async def replace_asset_file(
    asset_id: str,
    file: UploadFile = File(...),
    uploadedBy: str = Form("admin"),
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    payload = AssetFile(
        file_name=file.filename or "upload",
        data=await file.read(),
        content_type=file.content_type or "application/octet-stream",
    )
    try:
        replaced = await container.assets.replace_asset(asset_id, payload, uploaded_by=uploadedBy)
    except ContentStudioError as e:
        raise _to_http_error(e)
    return replaced.to_document()


@app.delete("/assets/{asset_id}")
async def delete_asset(
    asset_id: str,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    try:
        await container.assets.delete_asset(asset_id)
    except ContentStudioError as e:
        raise _to_http_error(e)
    return {"deleted": asset_id}


@app.post("/assets/batch-delete")
async def batch_delete_assets(
    request: BatchDeleteRequest,
    container: ServiceContainer = Depends(get_container),
    _token: str = Depends(bind_auth_token),
):
    failed = await container.assets.batch_delete_assets(request.assetIds)
    return {"deleted": [i for i in request.assetIds if i not in failed], "failed": failed}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
