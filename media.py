"""
Local caching of remote images referenced by portfolio items.

Images are stored flat in the media directory as <title>-<n><ext> and served
under /content/media/. A file that already exists is trusted as-is.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urlparse

import anyio
import httpx

from schemas import MediaAttachment, PortfolioGeneral, PortfolioItem

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/content/media/"
DEFAULT_PROFILE_PHOTO = "profilePhoto.jpg"


@dataclass
class ImageRecord:
    original_url: str
    filename: str
    downloaded: bool
    error: Optional[str] = None


def clean_title(title: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9\s-]", "", title)
    cleaned = re.sub(r"\s+", "-", cleaned)[:50]
    return cleaned or "image"


def source_extension(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""
    return PurePosixPath(path).suffix or ".png"


def local_filename(url: str) -> Optional[str]:
    """The media filename a rewritten attachment URL points at, if it is local."""
    if url and url.startswith(MEDIA_URL_PREFIX):
        return PurePosixPath(url).name
    return None


class MediaSynchronizer:
    def __init__(self, media_dir: Path, http: httpx.AsyncClient):
        self.media_dir = Path(media_dir)
        self.http = http
        # filename -> source url, for the current synchronization pass
        self._claims: Dict[str, str] = {}

    def reset(self) -> None:
        self._claims = {}

    def filename_for(self, url: str, title: str, index: int) -> str:
        """Derive the local filename; a second source URL on the same name gets a hash suffix."""
        stem = f"{clean_title(title)}-{index + 1}"
        ext = source_extension(url)
        name = f"{stem}{ext}"
        owner = self._claims.setdefault(name, url)
        if owner != url:
            digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]
            name = f"{stem}-{digest}{ext}"
            self._claims.setdefault(name, url)
        return name

    def claim_filenames(self, general: Optional[PortfolioGeneral], collections: Iterable[Iterable[PortfolioItem]]) -> None:
        """Claim every image name up front, in a fixed order, before downloads run concurrently."""
        if general is not None and general.profile_photo.startswith(("http://", "https://")):
            self.filename_for(general.profile_photo, "profilePhoto", 0)
        for items in collections:
            for item in items:
                title = item.heading or item.title or "image"
                for index, attachment in enumerate(item.attachments):
                    if attachment.type == "image" and attachment.url and not local_filename(attachment.url):
                        self.filename_for(attachment.url, title, index)

    async def download(self, url: str, path: Path) -> bool:
        partial = anyio.Path(f"{path}.part")
        logger.info("Downloading image from: %s", url)
        try:
            async with self.http.stream("GET", url, follow_redirects=True) as response:
                response.raise_for_status()
                async with await anyio.open_file(partial, "wb") as fh:
                    async for chunk in response.aiter_bytes():
                        await fh.write(chunk)
            await partial.rename(path)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, OSError) as e:
            logger.warning("Failed to download image %s: %s", url, e)
            await partial.unlink(missing_ok=True)
            return False
        logger.info("Successfully downloaded: %s", path.name)
        return True

    async def sync_attachment(self, attachment: MediaAttachment, title: str, index: int) -> Tuple[MediaAttachment, Optional[ImageRecord]]:
        if attachment.type != "image" or not attachment.url or local_filename(attachment.url):
            return attachment, None

        filename = self.filename_for(attachment.url, title, index)
        path = self.media_dir / filename
        record = ImageRecord(original_url=attachment.url, filename=filename, downloaded=False)

        if await anyio.Path(path).is_file():
            logger.debug("Image already exists: %s", filename)
            record.downloaded = True
        else:
            record.downloaded = await self.download(attachment.url, path)
            if not record.downloaded:
                record.error = "Download failed"

        if not record.downloaded:
            return attachment, record
        rewritten = attachment.model_copy(
            update={"url": MEDIA_URL_PREFIX + filename, "original_url": attachment.url}
        )
        return rewritten, record

    async def sync_item(self, item: PortfolioItem) -> Tuple[PortfolioItem, List[ImageRecord]]:
        if not item.attachments:
            return item, []
        await anyio.Path(self.media_dir).mkdir(parents=True, exist_ok=True)

        title = item.heading or item.title or "image"
        processed = []
        records = []
        for index, attachment in enumerate(item.attachments):
            attachment, record = await self.sync_attachment(attachment, title, index)
            processed.append(attachment)
            if record is not None:
                records.append(record)
        return item.model_copy(update={"attachments": processed}), records

    async def sync_collection(self, items: Iterable[PortfolioItem]) -> Tuple[List[PortfolioItem], List[ImageRecord]]:
        synced = []
        records: List[ImageRecord] = []
        for item in items:
            item, item_records = await self.sync_item(item)
            synced.append(item)
            records.extend(item_records)
        return synced, records

    async def sync_general(self, general: Optional[PortfolioGeneral]) -> Tuple[Optional[PortfolioGeneral], List[ImageRecord]]:
        if general is None or not general.profile_photo.startswith(("http://", "https://")):
            return general, []
        await anyio.Path(self.media_dir).mkdir(parents=True, exist_ok=True)
        photo, record = await self.sync_attachment(MediaAttachment(url=general.profile_photo), "profilePhoto", 0)
        return general.model_copy(update={"profile_photo": photo.url}), [record] if record else []

    async def cleanup(self, active: Set[str]) -> int:
        """Delete every file in the media directory not named in `active`."""
        removed = 0
        media_dir = anyio.Path(self.media_dir)
        if not await media_dir.is_dir():
            return removed
        try:
            for path in [p async for p in media_dir.iterdir()]:
                if path.name in active or not await path.is_file():
                    continue
                logger.info("Removing unused image: %s", path.name)
                await path.unlink()
                removed += 1
        except OSError:
            logger.exception("Error cleaning up unused images")
        return removed


def active_filenames(collections: Iterable[Iterable[PortfolioItem]], general: Optional[PortfolioGeneral] = None) -> Set[str]:
    # the default photo is referenced by the checked-in fallback snapshot
    active = {DEFAULT_PROFILE_PHOTO}
    for items in collections:
        for item in items:
            for attachment in item.attachments:
                name = local_filename(attachment.url)
                if name:
                    active.add(name)
    if general is not None:
        name = local_filename(general.profile_photo)
        if name:
            active.add(name)
    return active
