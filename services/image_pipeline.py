"""Helpers for ingesting uploaded photos and removing stored asset pairs.

Every upload is turned into two WebP files in `<images_dir>/<category>/`:

    <timestamp>-<name>.webp        full size, at most FULL_WIDTH wide
    <timestamp>-<name>-thumb.webp  thumbnail, at most THUMB_WIDTH wide

The pair shares its base name, which is how `remove_asset` finds the
sibling of whichever member it is asked to delete. Nothing tracks which
records reference a pair.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

import aiofiles

from dal.record_dal import ensure_category
from models.animal_record import ImagePair
from services.image_resizer import OUTPUT_EXTENSION, ImageResizer, detect_source_format
from utils.errors import InvalidInput, NotFound, ProcessingError, UnsupportedMediaType
from utils.slugs import safe_base_name

LOGGER = logging.getLogger(__name__)

PUBLIC_PREFIX = "/images/"
THUMB_SUFFIX = "-thumb"

FULL_WIDTH = 1200
FULL_QUALITY = 82
THUMB_WIDTH = 400
THUMB_QUALITY = 70


def sibling_path(path: Path) -> Path:
    """Return the other member of an asset pair by adding or stripping THUMB_SUFFIX."""
    stem = path.stem
    if stem.endswith(THUMB_SUFFIX):
        return path.with_name(f"{stem[: -len(THUMB_SUFFIX)]}{path.suffix}")
    return path.with_name(f"{stem}{THUMB_SUFFIX}{path.suffix}")


class ImagePipeline:
    """Validate, resize and store uploaded images; delete stored asset pairs.

    Args:
        images_dir: Root folder holding one subfolder per category.
        clock: Callable returning seconds since the epoch; used for file name prefixes.
    """

    def __init__(self, images_dir: Path | str, clock: Optional[Callable[[], float]] = None) -> None:
        self.images_dir = Path(images_dir)
        self.full = ImageResizer(max_width=FULL_WIDTH, quality=FULL_QUALITY)
        self.thumb = ImageResizer(max_width=THUMB_WIDTH, quality=THUMB_QUALITY)
        self._clock = clock or time.time

    def public_path(self, category: str, filename: str) -> str:
        return f"{PUBLIC_PREFIX}{category}/{filename}"

    async def ingest(self, data: bytes, original_name: str, category: str) -> ImagePair:
        """Store the full-size and thumbnail derivatives of one uploaded image."""
        pairs = await self.ingest_batch([(data, original_name)], category)
        return pairs[0]

    async def ingest_batch(self, uploads: Sequence[Tuple[bytes, str]], category: str) -> List[ImagePair]:
        """Process several uploads concurrently.

        Args:
            uploads: `(raw_bytes, original_filename)` tuples, in request order.
            category: Target collection.

        Returns:
            One ImagePair per upload, in the same order.

        Raises:
            UnsupportedMediaType: An upload decodes to an encoding outside
                the allow-list; nothing is written.
            ProcessingError: If any image fails; pairs already written by
                this batch are removed before raising.
        """
        directory = self.images_dir / ensure_category(category)
        await self._check_source_formats(uploads)
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

        base_names = self._reserve_base_names(directory, (name for _, name in uploads))
        results = await asyncio.gather(
            *(self._write_pair(directory, data, base) for (data, _), base in zip(uploads, base_names)),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            written = [r for r in results if not isinstance(r, BaseException)]
            for full_path, thumb_path in written:
                await self._unlink_quietly(full_path)
                await self._unlink_quietly(thumb_path)
            LOGGER.error("Image batch for %s failed: %s", category, failures[0])
            raise ProcessingError("Failed to process images", {"details": str(failures[0])})

        pairs = [
            ImagePair(
                full=self.public_path(category, full_path.name),
                thumb=self.public_path(category, thumb_path.name),
            )
            for full_path, thumb_path in results
        ]
        LOGGER.info("Stored %d image pair(s) under %s", len(pairs), category)
        return pairs

    async def remove_asset(self, public_path: str) -> List[str]:
        """Delete one member of an asset pair and, if present, its sibling.

        Returns:
            The public paths that were removed.

        Raises:
            InvalidInput: The path is not under the public image root.
            NotFound: The referenced file does not exist.
        """
        target = self.resolve_public_path(public_path)
        if not target.is_file():
            raise NotFound("Image not found")

        await asyncio.to_thread(target.unlink)
        removed = [public_path]

        sibling = sibling_path(target)
        if sibling.is_file():
            try:
                await asyncio.to_thread(sibling.unlink)
                removed.append(PUBLIC_PREFIX + sibling.relative_to(self.images_dir.resolve()).as_posix())
            except OSError as exc:
                LOGGER.warning("Could not remove sibling image %s: %s", sibling, exc)

        LOGGER.info("Removed image(s): %s", ", ".join(removed))
        return removed

    def resolve_public_path(self, public_path: str) -> Path:
        """Map a `/images/...` reference to a file inside `images_dir`."""
        if not isinstance(public_path, str) or not public_path.startswith(PUBLIC_PREFIX) or "\x00" in public_path:
            raise InvalidInput("Invalid path")

        root = self.images_dir.resolve()
        try:
            target = (root / public_path[len(PUBLIC_PREFIX):]).resolve()
        except (ValueError, OSError) as exc:
            raise InvalidInput("Invalid path") from exc
        if target == root or not target.is_relative_to(root):
            raise InvalidInput("Invalid path")
        return target

    def _reserve_base_names(self, directory: Path, original_names: Iterable[str]) -> List[str]:
        """Pick `<millis>-<name>` base names that clash neither with disk nor with each other."""
        taken: Set[str] = set()
        reserved: List[str] = []
        for original_name in original_names:
            base = safe_base_name(original_name)
            if f"-{base}".endswith(THUMB_SUFFIX):
                # A full-size name must never look like a thumbnail to sibling_path.
                base = f"{base}-img"
            millis = int(self._clock() * 1000)
            while True:
                candidate = f"{millis}-{base}"
                full_file = directory / f"{candidate}{OUTPUT_EXTENSION}"
                if candidate not in taken and not full_file.exists():
                    break
                millis += 1
            taken.add(candidate)
            reserved.append(candidate)
        return reserved

    async def _check_source_formats(self, uploads: Sequence[Tuple[bytes, str]]) -> None:
        """Sniff every upload before anything is written, ignoring the declared type."""
        results = await asyncio.gather(
            *(asyncio.to_thread(detect_source_format, data) for data, _ in uploads),
            return_exceptions=True,
        )
        for (_, name), result in zip(uploads, results):
            if isinstance(result, UnsupportedMediaType):
                raise UnsupportedMediaType(f"{name}: {result.message}")
            if isinstance(result, BaseException):
                LOGGER.error("Could not identify upload %s: %s", name, result)
                raise ProcessingError("Failed to process images", {"details": f"{name}: {result}"})

    async def _write_pair(self, directory: Path, data: bytes, base: str) -> Tuple[Path, Path]:
        """Render both derivatives in worker threads, then write them to disk."""
        full_bytes = await asyncio.to_thread(self.full.render, data)
        thumb_bytes = await asyncio.to_thread(self.thumb.render, data)

        full_path = directory / f"{base}{OUTPUT_EXTENSION}"
        thumb_path = directory / f"{base}{THUMB_SUFFIX}{OUTPUT_EXTENSION}"
        try:
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(full_bytes)
            async with aiofiles.open(thumb_path, "wb") as f:
                await f.write(thumb_bytes)
        except OSError:
            await self._unlink_quietly(full_path)
            await self._unlink_quietly(thumb_path)
            raise
        return full_path, thumb_path

    @staticmethod
    async def _unlink_quietly(path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Could not remove %s during cleanup: %s", path, exc)
