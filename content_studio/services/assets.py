import asyncio
import fnmatch
import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from content_studio.core.defaults import ASSET_CATEGORY_CONFIG
from content_studio.core.errors import AssetNotFoundError, AssetValidationError
from content_studio.core.telemetry import ASSET_UPLOAD_FAILED, EventRecorder, events
from content_studio.models.domain import ASSET_CATEGORIES, AssetMetadata, BrandAsset, utc_now
from content_studio.tools.blob_storage import BlobStorage, ProgressCallback
from content_studio.tools.document_store import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "brand_assets"

FileProgressCallback = Callable[[str, float], None]


@dataclass
class UploadFile:
    file_name: str
    data: bytes
    content_type: str


@dataclass
class FailedUpload:
    file_name: str
    error: str


@dataclass
class BatchUploadResult:
    uploaded: list[BrandAsset] = field(default_factory=list)
    failed: list[FailedUpload] = field(default_factory=list)


@dataclass
class BrandAssetStats:
    total_assets: int
    by_category: dict[str, int]
    total_size: int
    last_updated: Optional[datetime]


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_asset_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"asset_{_now_ms()}_{suffix}"


def asset_storage_path(brand_id: str, category: str, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    return f"brand-assets/{brand_id}/{category}/{timestamp_ms or _now_ms()}_{file_name}"


def validate_file(category: str, file_name: str, content_type: str, size: int) -> None:
    """Raise AssetValidationError if the file does not fit the category's rules."""
    if category not in ASSET_CATEGORIES:
        raise AssetValidationError(f"Unknown asset category: {category}")
    config = ASSET_CATEGORY_CONFIG[category]
    if size > config.max_size:
        raise AssetValidationError(
            f"{file_name} is {size} bytes; {config.label} files must be at most {config.max_size} bytes"
        )
    if not any(fnmatch.fnmatch(content_type, pattern) for pattern in config.accepted_types):
        raise AssetValidationError(
            f"{file_name} ({content_type}) is not accepted for {config.label}. "
            f"Accepted types: {', '.join(config.accepted_types)}"
        )


class AssetService:
    def __init__(self, store: DocumentStore, blobs: BlobStorage, recorder: EventRecorder = events):
        self.store = store
        self.blobs = blobs
        self.recorder = recorder

    async def _write_or_discard_blob(self, asset_id: str, document: dict, file_url: str) -> None:
        """Write the asset record; if that fails, remove the blob it would have pointed to."""
        try:
            await self.store.set(COLLECTION, asset_id, document)
        except Exception:
            logger.error(f"Failed to save asset record {asset_id}, removing uploaded blob {file_url}")
            try:
                await self.blobs.delete(file_url)
            except Exception as cleanup_error:
                logger.error(f"Could not remove orphaned blob {file_url}: {cleanup_error}")
            raise

    async def upload_asset(
        self,
        brand_id: str,
        category: str,
        file: UploadFile,
        metadata: Optional[AssetMetadata] = None,
        uploaded_by: str = "admin",
        on_progress: Optional[ProgressCallback] = None,
    ) -> BrandAsset:
        validate_file(category, file.file_name, file.content_type, len(file.data))

        path = asset_storage_path(brand_id, category, file.file_name)
        file_url = await self.blobs.upload(path, file.data, file.content_type, on_progress=on_progress)

        asset = BrandAsset(
            id=generate_asset_id(),
            brand_id=brand_id,
            category=category,
            file_name=file.file_name,
            file_type=file.content_type,
            file_size=len(file.data),
            file_url=file_url,
            storage_path=path,
            uploaded_by=uploaded_by,
            uploaded_at=utc_now(),
            metadata=metadata or AssetMetadata(),
        )
        await self._write_or_discard_blob(asset.id, asset.to_document(), file_url)
        logger.info(f"Uploaded asset {asset.id} ({file.file_name}) for {brand_id}/{category}")
        return asset

    async def batch_upload_assets(
        self,
        brand_id: str,
        category: str,
        files: list[UploadFile],
        metadata: Optional[AssetMetadata] = None,
        uploaded_by: str = "admin",
        on_progress: Optional[FileProgressCallback] = None,
    ) -> BatchUploadResult:
        """Upload files in parallel; each file succeeds or fails on its own."""

        def _progress_for(name: str) -> Optional[ProgressCallback]:
            if on_progress is None:
                return None
            return lambda pct: on_progress(name, pct)

        outcomes = await asyncio.gather(
            *(
                self.upload_asset(brand_id, category, f, metadata, uploaded_by, _progress_for(f.file_name))
                for f in files
            ),
            return_exceptions=True,
        )

        result = BatchUploadResult()
        for file, outcome in zip(files, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Upload failed for {file.file_name}: {outcome}")
                self.recorder.increment(ASSET_UPLOAD_FAILED, brand=brand_id, category=category)
                result.failed.append(FailedUpload(file.file_name, str(outcome)))
            else:
                result.uploaded.append(outcome)
        return result

    async def get_asset(self, asset_id: str) -> Optional[BrandAsset]:
        doc = await self.store.get(COLLECTION, asset_id)
        return BrandAsset.model_validate(doc) if doc else None

    async def get_assets_by_brand(self, brand_id: str) -> list[BrandAsset]:
        docs = await self.store.query(COLLECTION, where={"brandId": brand_id}, order_by="uploadedAt", descending=True)
        return [BrandAsset.model_validate(d) for d in docs]

    async def get_assets_by_category(self, brand_id: str, category: str) -> list[BrandAsset]:
        docs = await self.store.query(
            COLLECTION,
            where={"brandId": brand_id, "category": category},
            order_by="uploadedAt",
            descending=True,
        )
        return [BrandAsset.model_validate(d) for d in docs]

    async def delete_asset(self, asset_id: str) -> None:
        asset = await self.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset not found: {asset_id}")
        await self.blobs.delete(asset.file_url)
        await self.store.delete(COLLECTION, asset_id)
        logger.info(f"Deleted asset {asset_id}")

    async def batch_delete_assets(self, asset_ids: list[str]) -> list[str]:
        """Delete each asset independently. Returns the ids that could not be deleted."""
        outcomes = await asyncio.gather(*(self.delete_asset(a) for a in asset_ids), return_exceptions=True)
        failed = []
        for asset_id, outcome in zip(asset_ids, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Delete failed for {asset_id}: {outcome}")
                failed.append(asset_id)
        return failed

    async def update_asset_metadata(self, asset_id: str, metadata: dict) -> BrandAsset:
        asset = await self.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset not found: {asset_id}")
        merged = AssetMetadata.model_validate({**asset.metadata.to_document(), **metadata})
        updated = asset.model_copy(update={"metadata": merged})
        await self.store.set(COLLECTION, asset_id, {"metadata": merged.to_document()}, merge=True)
        return updated

    async def replace_asset(self, asset_id: str, file: UploadFile, uploaded_by: str = "admin") -> BrandAsset:
        """Swap the stored file for a new one, keeping id, category and metadata."""
        asset = await self.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset not found: {asset_id}")
        validate_file(asset.category, file.file_name, file.content_type, len(file.data))

        path = asset_storage_path(asset.brand_id, asset.category, file.file_name)
        file_url = await self.blobs.upload(path, file.data, file.content_type)

        updated = asset.model_copy(update={
            "file_name": file.file_name,
            "file_type": file.content_type,
            "file_size": len(file.data),
            "file_url": file_url,
            "storage_path": path,
            "uploaded_by": uploaded_by,
            "uploaded_at": utc_now(),
        })
        await self._write_or_discard_blob(asset_id, updated.to_document(), file_url)
        if asset.file_url != file_url:
            await self.blobs.delete(asset.file_url)
        return updated

    async def get_brand_asset_stats(self, brand_id: str) -> BrandAssetStats:
        assets = await self.get_assets_by_brand(brand_id)
        by_category = {category: 0 for category in ASSET_CATEGORIES}
        for asset in assets:
            by_category[asset.category] += 1
        return BrandAssetStats(
            total_assets=len(assets),
            by_category=by_category,
            total_size=sum(a.file_size for a in assets),
            last_updated=assets[0].uploaded_at if assets else None,
        )

    async def search_assets(
        self,
        brand_id: str,
        query: str = "",
        category: Optional[str] = None,
        file_type: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> list[BrandAsset]:
        if category:
            assets = await self.get_assets_by_category(brand_id, category)
        else:
            assets = await self.get_assets_by_brand(brand_id)

        if file_type:
            assets = [a for a in assets if file_type in a.file_type]
        if tags:
            wanted = set(tags)
            assets = [a for a in assets if wanted.intersection(a.metadata.tags)]
        if query:
            q = query.lower()
            assets = [
                a for a in assets
                if q in a.file_name.lower()
                or q in (a.metadata.description or "").lower()
                or any(q in tag.lower() for tag in a.metadata.tags)
            ]
        return assets
