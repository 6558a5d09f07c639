import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import anyio

from cms import NotionContentSource
from media import ImageRecord, MediaSynchronizer, active_filenames
from schemas import (
    COLLECTIONS, PortfolioCollection, Snapshot, StaticGenerationResult, SyncStats, UpdateMetadata,
)

logger = logging.getLogger(__name__)

# item type -> Snapshot field holding that collection
SNAPSHOT_FIELDS = {
    "workExperience": "work_experience",
    "project": "projects",
    "writing": "writing",
    "speaking": "speaking",
    "education": "education",
    "contact": "contact",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SnapshotStore:
    """profileData.json, lastUpdate.json and media/ under one content directory."""

    def __init__(self, content_dir: Path, fallback_file: Optional[Path] = None):
        self.content_dir = Path(content_dir)
        self.snapshot_path = self.content_dir / "profileData.json"
        self.update_path = self.content_dir / "lastUpdate.json"
        self.media_dir = self.content_dir / "media"
        self.fallback_path = Path(fallback_file) if fallback_file else self.content_dir / "profileData.fallback.json"

    async def _read_json(self, path: Path) -> Optional[Any]:
        try:
            return json.loads(await anyio.Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

    async def _replace(self, path: Path, text: str) -> None:
        tmp = anyio.Path(f"{path}.tmp")
        await tmp.write_text(text, encoding="utf-8")
        await tmp.replace(path)

    async def read_snapshot(self) -> Optional[Dict[str, Any]]:
        return await self._read_json(self.snapshot_path)

    async def read_update_info(self) -> Optional[UpdateMetadata]:
        data = await self._read_json(self.update_path)
        if data is None:
            return None
        try:
            return UpdateMetadata.model_validate(data)
        except ValueError:
            logger.warning("Ignoring malformed %s", self.update_path)
            return None

    async def read_fallback(self) -> Optional[bytes]:
        try:
            return await anyio.Path(self.fallback_path).read_bytes()
        except OSError:
            return None

    async def has_static_files(self) -> bool:
        return await anyio.Path(self.snapshot_path).is_file() and await anyio.Path(self.update_path).is_file()

    async def write(self, snapshot: Snapshot, metadata: UpdateMetadata) -> None:
        await anyio.Path(self.content_dir).mkdir(parents=True, exist_ok=True)
        await self._replace(self.snapshot_path, snapshot.model_dump_json(by_alias=True, indent=2))
        await self._replace(self.update_path, metadata.model_dump_json(by_alias=True, indent=2))


def build_snapshot(general, collections: Dict[str, List]) -> Snapshot:
    fields = {SNAPSHOT_FIELDS[item_type]: collections.get(item_type, []) for _, item_type in COLLECTIONS}
    return Snapshot(
        general=general,
        all_collections=[
            PortfolioCollection(name=name, items=collections.get(item_type, []))
            for name, item_type in COLLECTIONS
            if collections.get(item_type)
        ],
        **fields,
    )


def summarize(records: List[ImageRecord], cleaned: int) -> SyncStats:
    downloaded = sum(1 for r in records if r.downloaded)
    return SyncStats(
        total_images=len(records),
        downloaded=downloaded,
        failed=len(records) - downloaded,
        cleaned=cleaned,
    )


class PortfolioGenerator:
    """Runs synchronization passes and persists their snapshot.

    Only one pass runs at a time; callers arriving during a pass share its result.
    """

    def __init__(self, source: NotionContentSource, media: MediaSynchronizer, store: SnapshotStore):
        self.source = source
        self.media = media
        self.store = store
        self._inflight: Optional[asyncio.Future] = None

    async def sync(self) -> Tuple[Snapshot, SyncStats]:
        logger.info("Starting portfolio sync with image downloads...")
        self.media.reset()

        general, *fetched = await asyncio.gather(
            self.source.fetch_general(),
            *(self.source.fetch_collection(name, item_type) for name, item_type in COLLECTIONS),
        )
        self.media.claim_filenames(general, fetched)
        synced = await asyncio.gather(
            self.media.sync_general(general),
            *(self.media.sync_collection(items) for items in fetched),
        )

        general, records = synced[0]
        records = list(records)
        collections = {}
        for (_, item_type), (items, item_records) in zip(COLLECTIONS, synced[1:]):
            collections[item_type] = items
            records.extend(item_records)

        cleaned = await self.media.cleanup(active_filenames(collections.values(), general))
        stats = summarize(records, cleaned)
        logger.info(
            "Image sync complete: %d downloaded, %d failed, %d cleaned",
            stats.downloaded, stats.failed, stats.cleaned,
        )
        return build_snapshot(general, collections), stats

    async def _generate(self) -> StaticGenerationResult:
        try:
            logger.info("Starting static portfolio generation...")
            snapshot, stats = await self.sync()
            metadata = UpdateMetadata(timestamp=utc_timestamp(), stats=stats)
            await self.store.write(snapshot, metadata)
            logger.info("Static portfolio generation complete")
            return StaticGenerationResult(success=True, timestamp=metadata.timestamp, stats=stats)
        except Exception as e:
            logger.exception("Failed to generate static portfolio")
            return StaticGenerationResult(success=False, timestamp=utc_timestamp(), error=str(e) or type(e).__name__)

    async def generate(self) -> StaticGenerationResult:
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._generate())
        else:
            logger.info("Generation already in progress, waiting for it")
        return await asyncio.shield(self._inflight)
