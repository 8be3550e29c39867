from datetime import datetime, timezone
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ContentType = Literal["ad-copy", "blog", "landing-page", "email"]
EmailType = Literal["invitation", "nurturing-drip", "email-blast"]
CampaignStage = Literal["tofu", "mofu", "bofu"]
AssetCategory = Literal["logos", "brand-guidelines", "competitor-ads", "reference-copy", "other"]
LengthUnit = Literal["words", "characters"]

CONTENT_TYPES: tuple[str, ...] = get_args(ContentType)
EMAIL_TYPES: tuple[str, ...] = get_args(EmailType)
CAMPAIGN_STAGES: tuple[str, ...] = get_args(CampaignStage)
ASSET_CATEGORIES: tuple[str, ...] = get_args(AssetCategory)

MARKETS = ("ASIA", "EMEA", "ANZ", "Japan")
PLATFORMS = ("META", "GOOGLE")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for stored records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# --- Brand configuration ---


class BrandGuidelines(CamelModel):
    tone_of_voice: str
    key_messaging: str
    target_audience: str
    values: str
    palette: Optional[str] = None
    logo_rules: Optional[str] = None
    fonts: Optional[str] = None
    imagery_style: Optional[str] = None
    dos_and_donts: Optional[str] = None


class Brand(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    color: str = ""
    logo_url: Optional[str] = None
    guidelines: BrandGuidelines
    inspiration: list[str] = Field(default_factory=list)


# --- Instructions and examples ---


class Persona(CamelModel):
    name: str = ""
    description: str = ""
    pain_points: list[str] = Field(default_factory=list)
    solution: str = ""


class CampaignExample(CamelModel):
    stage: CampaignStage = "tofu"
    type: Optional[ContentType] = None
    market: Optional[str] = None
    platform: Optional[str] = None
    headline: Optional[str] = None
    body: str = Field("", alias="copy")
    cta: str = ""
    notes: Optional[str] = None
    what_works: Optional[str] = None


class TypeSpecificInstructions(CamelModel):
    system_prompt: str = ""
    requirements: str = ""
    dos: list[str] = Field(default_factory=list)
    donts: list[str] = Field(default_factory=list)
    examples: list[CampaignExample] = Field(default_factory=list)


class EmailInstructions(CamelModel):
    invitation: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)
    nurturing_drip: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)
    email_blast: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)

    def for_type(self, email_type: Optional[str]) -> TypeSpecificInstructions:
        if email_type == "invitation":
            return self.invitation
        if email_type == "nurturing-drip":
            return self.nurturing_drip
        return self.email_blast


class CampaignInstructions(CamelModel):
    tofu: str = ""
    mofu: str = ""
    bofu: str = ""


class ReferenceMaterials(CamelModel):
    interviews: str = ""
    testimonials: str = ""


class BrandInstructions(CamelModel):
    brand_id: str
    brand_introduction: str = ""
    personas: list[Persona] = Field(default_factory=list)
    core_values: list[str] = Field(default_factory=list)
    tone_of_voice: str = ""
    key_messaging: list[str] = Field(default_factory=list)
    campaign_instructions: CampaignInstructions = Field(default_factory=CampaignInstructions)
    ad_copy_instructions: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)
    blog_instructions: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)
    landing_page_instructions: TypeSpecificInstructions = Field(default_factory=TypeSpecificInstructions)
    email_instructions: EmailInstructions = Field(default_factory=EmailInstructions)
    reference_materials: ReferenceMaterials = Field(default_factory=ReferenceMaterials)
    version: int = 0
    last_updated_by: str = ""
    last_updated: Optional[datetime] = None

    def for_content_type(
        self, content_type: str, email_type: Optional[str] = None
    ) -> TypeSpecificInstructions:
        if content_type == "ad-copy":
            return self.ad_copy_instructions
        if content_type == "blog":
            return self.blog_instructions
        if content_type == "landing-page":
            return self.landing_page_instructions
        if content_type == "email":
            return self.email_instructions.for_type(email_type)
        raise ValueError(f"Unknown content type: {content_type}")


class LengthSpecification(CamelModel):
    value: int
    unit: LengthUnit = "words"


class GenerationOptions(CamelModel):
    length_spec: Optional[LengthSpecification] = None
    campaign_stage: Optional[CampaignStage] = None
    email_type: Optional[EmailType] = None
    ad_variant: Optional[Literal["short", "long"]] = None
    market: Optional[str] = None
    platform: Optional[str] = None


# --- Pattern knowledge ---


class PatternSet(CamelModel):
    headline_styles: list[str] = Field(default_factory=list)
    structure_patterns: list[str] = Field(default_factory=list)
    tone_characteristics: list[str] = Field(default_factory=list)
    cta_strategies: list[str] = Field(default_factory=list)
    conversion_techniques: list[str] = Field(default_factory=list)
    social_proof_approaches: list[str] = Field(default_factory=list)


PATTERN_CATEGORIES: tuple[str, ...] = tuple(PatternSet.model_fields)


class PerformanceSummary(CamelModel):
    total_examples: int = 0


class PatternKnowledgeBase(CamelModel):
    id: str
    brand_id: str
    market: str
    platform: str
    content_type: ContentType
    patterns: PatternSet = Field(default_factory=PatternSet)
    auto_extracted_insights: str = ""
    manual_learnings: str = ""
    example_ids: list[str] = Field(default_factory=list)
    performance_summary: PerformanceSummary = Field(default_factory=PerformanceSummary)
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    deleted: bool = False


# --- Assets ---


class AssetMetadata(CamelModel):
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    campaign_name: Optional[str] = None
    source_url: Optional[str] = None
    usage_rights: Optional[str] = None


class BrandAsset(CamelModel):
    id: str
    brand_id: str
    category: AssetCategory
    file_name: str
    file_type: str
    file_size: int
    file_url: str
    storage_path: str = ""
    uploaded_by: str = ""
    uploaded_at: datetime = Field(default_factory=utc_now)
    metadata: AssetMetadata = Field(default_factory=AssetMetadata)


class ColorPalette(CamelModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    accent: list[str] = Field(default_factory=list)
    all_colors: list[str] = Field(default_factory=list, alias="all")


class Typography(CamelModel):
    primary: str = ""
    secondary: str = ""
    details: str = ""


class ParsedGuidelineFields(CamelModel):
    tone_of_voice: Optional[str] = None
    key_messaging: Optional[str] = None
    target_audience: Optional[str] = None
    values: Optional[str] = None
    imagery_style: Optional[str] = None
    dos_and_donts: Optional[str] = None


class ParsedGuidelines(CamelModel):
    """What could be read out of a brand guideline document."""

    guidelines: ParsedGuidelineFields = Field(default_factory=ParsedGuidelineFields)
    colors: ColorPalette = Field(default_factory=ColorPalette)
    typography: Optional[Typography] = None
    logo_rules: Optional[str] = None


class GenerationContextSummary(CamelModel):
    has_instructions: bool = False
    has_guidelines: bool = False
    has_reference_copy: bool = False
    has_competitor_ads: bool = False
    has_logos: bool = False
    total_assets: int = 0
    message: str = "No additional context"


# --- Generation output ---


class AdCopyVariation(CamelModel):
    id: str = ""
    version: Literal["short", "long"] = "short"
    persona: str = ""
    angle: str = ""
    headline: str = ""
    body: str = ""
    cta: str = ""
    keywords: list[str] = Field(default_factory=list)


class AdVariation(CamelModel):
    headline: str = ""
    primary_text: str = ""
    cta: str = ""
    keywords: list[str] = Field(default_factory=list)


class ContentMetadata(CamelModel):
    word_count: int = 0
    character_count: int = 0
    campaign_stage: Optional[CampaignStage] = None
    email_type: Optional[EmailType] = None
    fallback_instructions_used: bool = False
    pattern_source: Optional[Literal["market", "general"]] = None


class GeneratedContent(CamelModel):
    type: ContentType
    variations: Optional[list[AdCopyVariation]] = None
    content: Optional[str] = None
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)


class ApprovedContent(CamelModel):
    id: str = ""
    brand_id: str
    brand_name: str
    content_type: str
    user_prompt: str
    variation: Optional[AdVariation] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    approved_at: datetime = Field(default_factory=utc_now)
