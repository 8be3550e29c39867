import logging
from typing import Optional

from content_studio.models.domain import AdVariation, ApprovedContent, GeneratedContent, utc_now
from content_studio.tools.document_store import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "approved_content"

NO_APPROVED_CONTENT = "No approved content available yet. Write based on brand guidelines."


class ApprovedContentRepository:
    """Append-only log of output a marketer signed off on."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _append(self, record: ApprovedContent) -> ApprovedContent:
        doc = record.to_document()
        doc.pop("id", None)
        doc_id = await self.store.add(COLLECTION, doc)
        logger.info(f"Saved approved {record.content_type} for {record.brand_id} ({doc_id})")
        return record.model_copy(update={"id": doc_id})

    async def save_approved_content(
        self,
        brand_id: str,
        brand_name: str,
        variation: AdVariation,
        user_prompt: str,
        content_type: str = "ad-copy",
        image_url: Optional[str] = None,
    ) -> ApprovedContent:
        return await self._append(ApprovedContent(
            brand_id=brand_id,
            brand_name=brand_name,
            content_type=content_type,
            user_prompt=user_prompt,
            variation=variation,
            image_url=image_url,
            approved_at=utc_now(),
        ))

    async def save_approved_generated_content(
        self,
        brand_id: str,
        brand_name: str,
        user_prompt: str,
        generated: GeneratedContent,
        variation_index: Optional[int] = None,
        image_url: Optional[str] = None,
    ) -> ApprovedContent:
        """Approve any generated output: one ad variation, or the whole content blob."""
        if generated.variations:
            index = variation_index or 0
            if not 0 <= index < len(generated.variations):
                raise IndexError(f"Variation {index} out of range (have {len(generated.variations)})")
            picked = generated.variations[index]
            variation = AdVariation(
                headline=picked.headline,
                primary_text=picked.body,
                cta=picked.cta,
                keywords=picked.keywords,
            )
            return await self.save_approved_content(
                brand_id, brand_name, variation, user_prompt, generated.type, image_url
            )

        return await self._append(ApprovedContent(
            brand_id=brand_id,
            brand_name=brand_name,
            content_type=generated.type,
            user_prompt=user_prompt,
            content=generated.content,
            image_url=image_url,
            approved_at=utc_now(),
        ))

    async def get_approved_content_for_brand(self, brand_id: str, limit: int = 10) -> list[ApprovedContent]:
        try:
            docs = await self.store.query(
                COLLECTION, where={"brandId": brand_id}, order_by="approvedAt", descending=True, limit=limit
            )
        except Exception as e:
            logger.error(f"Error fetching approved content for {brand_id}: {e}")
            return []
        return [ApprovedContent.model_validate(d) for d in docs]


def format_approved_content_as_inspiration(items: list[ApprovedContent]) -> str:
    """Render approved items as a numbered few-shot block for prompts."""
    if not items:
        return NO_APPROVED_CONTENT

    blocks = []
    for i, item in enumerate(items, start=1):
        lines = [
            f"EXAMPLE {i} (Approved on {item.approved_at.strftime('%Y-%m-%d')}):",
            f"User Request: {item.user_prompt}",
        ]
        if item.variation:
            lines += [
                f"Headline: {item.variation.headline}",
                f"Primary Text: {item.variation.primary_text}",
                f"CTA: {item.variation.cta}",
                f"Keywords: {', '.join(item.variation.keywords)}",
            ]
        elif item.content:
            lines.append(f"Content: {item.content}")
        lines.append("---")
        blocks.append("\n".join(lines))

    return (
        f"Here are {len(items)} SUCCESSFUL {items[0].content_type} examples that were approved by the marketing team. "
        "Use these as inspiration for tone, style, and approach:\n\n"
        + "\n\n".join(blocks)
        + "\n\nGenerate new content that matches the quality and style of these approved examples."
    )
