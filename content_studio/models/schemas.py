from typing import Any, Optional

from pydantic import BaseModel, Field

from content_studio.models.domain import (
    AdVariation,
    ContentType,
    GeneratedContent,
    GenerationOptions,
)


class GenerateTextRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    contentType: ContentType
    prompt: str = Field(..., min_length=1)
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    regenerationFeedback: Optional[str] = None


class GenerateAdCopyRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    inspirationLimit: int = Field(10, ge=0, le=50)


class RefineTextRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    originalText: str = Field(..., min_length=1)
    refinement: str = Field(..., min_length=1)


class GenerateImagesRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    adCopy: AdVariation = Field(default_factory=AdVariation)
    count: int = Field(1, ge=1, le=4)
    variations: bool = False


class RegenerateImagesRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    refinement: str = Field(..., min_length=1)
    count: int = Field(1, ge=1, le=4)


class VoiceoverRequest(BaseModel):
    text: str = Field(..., min_length=1)
    voice: str = "alloy"
    speed: float = Field(1.0, ge=0.25, le=4.0)
    targetSeconds: int = Field(30, ge=1, le=600)


class SaveInstructionsRequest(BaseModel):
    instructions: dict[str, Any]
    editor: str = "admin"


class UpdateInstructionsRequest(BaseModel):
    updates: dict[str, Any]
    editor: str = "admin"


class ManualLearningsRequest(BaseModel):
    manualLearnings: str


class ApproveContentRequest(BaseModel):
    brandId: str = Field(..., min_length=1)
    userPrompt: str = Field(..., min_length=1)
    contentType: str = "ad-copy"
    variation: Optional[AdVariation] = None
    generated: Optional[GeneratedContent] = None
    variationIndex: Optional[int] = Field(None, ge=0)
    imageUrl: Optional[str] = None


class AssetMetadataUpdate(BaseModel):
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    campaignName: Optional[str] = None
    sourceUrl: Optional[str] = None
    usageRights: Optional[str] = None


class BatchDeleteRequest(BaseModel):
    assetIds: list[str] = Field(..., min_length=1)
