import asyncio
import base64
import logging
from typing import Optional

from google import genai
from google.genai import types

from content_studio.core.config import Settings, get_settings
from content_studio.core.errors import ContentStudioError
from content_studio.models.domain import AdVariation, Brand
from content_studio.prompts import AD_IMAGE_PROMPT, IMAGE_REFINEMENT_PROMPT, IMAGE_VARIATION_ADJUSTMENTS

logger = logging.getLogger(__name__)

# (keywords, description); first match wins.
SCENE_SETTINGS = (
    (("open day", "campus", "visit", "tour"), "Campus tour or open day environment, students engaging with educators, vibrant learning spaces visible"),
    (("online", "remote", "virtual"), "Home learning setup, student engaged with laptop or tablet, comfortable modern home environment"),
    (("results", "achievement", "success"), "Celebration or achievement moment, genuine joy and pride"),
    (("scholarship", "financial", "fee"), "Supportive educational setting emphasizing opportunity and accessibility"),
    (("university", "prep", "college"), "Academic preparation setting, older students in a sophisticated study environment"),
)
DEFAULT_SETTING = "Educational environment that feels welcoming and inspiring, students authentically engaged in learning"

COPY_ACTIONS = (
    (("discover", "explore", "find"), "Students actively exploring and discovering, engaged and curious"),
    (("achieve", "success", "excel"), "Moment of achievement, genuine celebration"),
    (("join", "be part", "belong"), "Students working together, sense of community and belonging"),
    (("learn", "study", "master"), "Focused learning moment, concentration and engagement"),
    (("grow", "develop", "transform"), "Student building skills, visible growth and confidence"),
    (("future", "ready", "prepare"), "Student displaying confidence and readiness, aspirational yet grounded"),
)
DEFAULT_ACTION = "Natural interaction and engagement, authentic educational moment"


def _first_match(text: str, table, default: str) -> str:
    for keywords, description in table:
        if any(k in text for k in keywords):
            return description
    return default


def build_ad_image_prompt(brand: Brand, ad_copy: AdVariation, user_prompt: str) -> str:
    prompt_lower = user_prompt.lower()
    if "parent" in prompt_lower:
        audience = "parents"
    elif "student" in prompt_lower:
        audience = "students"
    else:
        audience = "students and families"

    g = brand.guidelines
    return AD_IMAGE_PROMPT.format(
        brand_name=brand.name,
        user_prompt=user_prompt,
        setting=_first_match(prompt_lower, SCENE_SETTINGS, DEFAULT_SETTING),
        audience=audience,
        action=_first_match(f"{ad_copy.headline} {ad_copy.primary_text}".lower(), COPY_ACTIONS, DEFAULT_ACTION),
        imagery_style=g.imagery_style or "Professional, authentic, documentary",
        palette=f"\nColors: {g.palette}" if g.palette else "",
        dos_and_donts=f"\nGuidelines: {g.dos_and_donts}" if g.dos_and_donts else "",
        headline=ad_copy.headline,
        cta=ad_copy.cta,
    )


def build_variation_prompt(base_prompt: str, variation_index: int) -> str:
    adjustment = IMAGE_VARIATION_ADJUSTMENTS[variation_index % len(IMAGE_VARIATION_ADJUSTMENTS)]
    return f"{base_prompt}\n\n{adjustment}"


def build_refinement_prompt(brand: Brand, text: str, refinement: str, count: int) -> str:
    g = brand.guidelines
    return IMAGE_REFINEMENT_PROMPT.format(
        brand_name=brand.name,
        text=text,
        refinement=refinement,
        imagery_style=g.imagery_style or "Professional, authentic, documentary",
        palette=f"\n- Color Palette: The brand uses these colors: {g.palette}" if g.palette else "",
        dos_and_donts=f"\n- Adherence: {g.dos_and_donts}" if g.dos_and_donts else "",
        count=count,
    )


class ImageGenerator:
    def __init__(self, client: Optional[genai.Client] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.settings.gemini_api_key or None)
        return self._client

    async def generate_images(self, prompt: str, count: int = 1) -> list[str]:
        """Generate `count` JPEG images and return them base64-encoded."""
        try:
            response = await self.client.aio.models.generate_images(
                model=self.settings.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=count,
                    output_mime_type="image/jpeg",
                    aspect_ratio="1:1",
                ),
            )
        except Exception as e:
            logger.error(f"Error generating images: {e}")
            raise ContentStudioError(f"Failed to generate images: {e}") from e

        images = [
            base64.b64encode(img.image.image_bytes).decode("ascii")
            for img in (response.generated_images or [])
            if img.image and img.image.image_bytes
        ]
        logger.info(f"Generated {len(images)}/{count} images")
        return images

    async def generate_image_variations(
        self, base_prompt: str, count: int, delay_seconds: float = 2.0
    ) -> list[str]:
        """One request per variation, spaced out; a failed variation is skipped."""
        images: list[str] = []
        for i in range(count):
            if i:
                await asyncio.sleep(delay_seconds)
            try:
                images.extend(await self.generate_images(build_variation_prompt(base_prompt, i), 1))
            except ContentStudioError as e:
                logger.warning(f"Image variation {i + 1}/{count} failed: {e}")
        return images

    async def regenerate_images(self, brand: Brand, text: str, refinement: str, count: int) -> list[str]:
        return await self.generate_images(build_refinement_prompt(brand, text, refinement, count), count)
