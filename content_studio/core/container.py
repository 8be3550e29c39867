import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from content_studio.core.config import Settings, get_settings
from content_studio.services.asset_extraction import AssetTextExtractor
from content_studio.services.assets import AssetService
from content_studio.services.feedback import ApprovedContentRepository
from content_studio.services.images import ImageGenerator
from content_studio.services.instructions import InstructionsRepository
from content_studio.services.patterns import PatternKnowledgeRepository
from content_studio.services.voiceover import VoiceoverGenerator
from content_studio.tools.blob_storage import BlobStorage, InMemoryBlobStorage, SupabaseBlobStorage
from content_studio.tools.document_store import DocumentStore, InMemoryDocumentStore, McpDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    store: DocumentStore
    blobs: BlobStorage
    instructions: InstructionsRepository
    patterns: PatternKnowledgeRepository
    approved: ApprovedContentRepository
    assets: AssetService
    extractor: AssetTextExtractor
    images: ImageGenerator
    voiceover: VoiceoverGenerator


def build_document_store(settings: Settings) -> DocumentStore:
    if settings.document_store == "mcp":
        return McpDocumentStore(server_url=settings.mcp_server_url)
    return InMemoryDocumentStore()


def build_blob_storage(settings: Settings) -> BlobStorage:
    if settings.blob_storage == "supabase":
        return SupabaseBlobStorage(settings.supabase_url, settings.supabase_service_key, settings.asset_bucket)
    return InMemoryBlobStorage()


def build_container(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    blobs: Optional[BlobStorage] = None,
) -> ServiceContainer:
    settings = settings or get_settings()
    store = store or build_document_store(settings)
    blobs = blobs or build_blob_storage(settings)
    logger.info(f"Using {type(store).__name__} documents and {type(blobs).__name__} blobs")
    return ServiceContainer(
        settings=settings,
        store=store,
        blobs=blobs,
        instructions=InstructionsRepository(store),
        patterns=PatternKnowledgeRepository(store),
        approved=ApprovedContentRepository(store),
        assets=AssetService(store, blobs),
        extractor=AssetTextExtractor(blobs),
        images=ImageGenerator(settings=settings),
        voiceover=VoiceoverGenerator(settings=settings),
    )


@lru_cache
def get_container() -> ServiceContainer:
    return build_container()
